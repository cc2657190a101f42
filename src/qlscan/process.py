# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shell-free wrapper around ``subprocess`` used for engine invocations."""

from __future__ import annotations

import shutil

# Commands are always argument lists; ``shell=True`` is never used.
import subprocess  # nosec B404
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from subprocess import CompletedProcess

TIMEOUT_RETURNCODE = 124


@dataclass(frozen=True, slots=True)
class CommandOptions:
    """Execution options applied to a single command."""

    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    check: bool = True
    timeout: float | None = None
    discard_stdin: bool = True


class SubprocessExecutionError(RuntimeError):
    """Raised when a subprocess exits with a non-zero status while ``check`` is true."""

    def __init__(self, command: Sequence[str], returncode: int, stdout: str, stderr: str) -> None:
        """Initialise the error with captured subprocess metadata.

        Args:
            command: Normalised command sequence that was executed.
            returncode: Exit status reported by the subprocess.
            stdout: Captured standard output stream.
            stderr: Captured standard error stream.
        """

        super().__init__(
            f"Command '{command[0]}' exited with status {returncode}. stderr: {stderr.strip() or '<none>'}",
        )
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


def _ensure_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return value.decode(errors="ignore")


def normalize_args(args: Sequence[str]) -> list[str]:
    """Resolve the executable in ``args`` against ``PATH``.

    Args:
        args: Raw command arguments supplied by the caller.

    Returns:
        list[str]: Argument list whose head is an absolute executable path.

    Raises:
        ValueError: If no arguments are provided.
        FileNotFoundError: If the executable cannot be resolved on ``PATH``.
    """

    if not args:
        raise ValueError("subprocess command requires at least one argument")

    head, *rest = args
    head_path = Path(head)
    if head_path.is_absolute():
        return [str(head_path), *rest]

    resolved = shutil.which(head)
    if resolved is None:
        raise FileNotFoundError(f"Executable '{head}' was not found on PATH")
    return [resolved, *rest]


def run_command(args: Sequence[str], *, options: CommandOptions | None = None) -> CompletedProcess[str]:
    """Execute ``args`` with captured text output.

    Args:
        args: Command and argument sequence to execute.
        options: Execution options; defaults check the exit status.

    Returns:
        CompletedProcess[str]: Subprocess execution metadata.

    Raises:
        FileNotFoundError: If the executable cannot be resolved on ``PATH``.
        SubprocessExecutionError: When ``check`` is true and the process exits
            with a non-zero status (timeouts report status 124).
    """

    resolved_options = options or CommandOptions()
    normalized = normalize_args(args)
    try:
        completed: CompletedProcess[str] = subprocess.run(  # nosec B603 - argument list, no shell
            normalized,
            cwd=str(resolved_options.cwd) if resolved_options.cwd is not None else None,
            env=dict(resolved_options.env) if resolved_options.env is not None else None,
            check=False,
            capture_output=True,
            text=True,
            timeout=resolved_options.timeout,
            stdin=subprocess.DEVNULL if resolved_options.discard_stdin else None,
        )
    except subprocess.TimeoutExpired as exc:
        stderr = _ensure_text(exc.stderr)
        timeout_msg = f"Command timed out after {resolved_options.timeout:.1f}s"
        completed = subprocess.CompletedProcess(
            args=normalized,
            returncode=TIMEOUT_RETURNCODE,
            stdout=_ensure_text(exc.stdout),
            stderr=f"{stderr}\n{timeout_msg}" if stderr else timeout_msg,
        )

    if resolved_options.check and completed.returncode != 0:
        raise SubprocessExecutionError(normalized, completed.returncode, completed.stdout, completed.stderr)
    return completed


__all__ = ["CommandOptions", "SubprocessExecutionError", "normalize_args", "run_command"]
