# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy shared by the scan pipeline."""

from __future__ import annotations


class QlscanError(RuntimeError):
    """Base class for failures surfaced to the CLI with an exit status."""

    exit_code: int = 1


class ConfigError(QlscanError):
    """Raised when configuration input is unreadable or malformed."""


class SelectionError(QlscanError):
    """Raised when admitted files cannot be copied into the isolated tree."""


class EngineError(QlscanError):
    """Raised when an analysis engine invocation fails."""

    def __init__(self, message: str, *, returncode: int | None = None, stderr: str = "") -> None:
        """Initialise the error with the failing invocation's details.

        Args:
            message: Human-readable description of the failure.
            returncode: Exit status reported by the engine, when it ran at all.
            stderr: Captured standard error output.
        """

        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class TrackerError(QlscanError):
    """Raised when the issue tracker rejects a list or create request."""


class ReportError(QlscanError):
    """Raised when a run-level SARIF report cannot be read back."""


__all__ = [
    "ConfigError",
    "EngineError",
    "QlscanError",
    "ReportError",
    "SelectionError",
    "TrackerError",
]
