# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for CodeQL command construction and failure mapping."""

from __future__ import annotations

from pathlib import Path
from subprocess import CompletedProcess

import pytest

from qlscan.engine import CodeQLEngine, database_paths
from qlscan.errors import EngineError
from qlscan.process import CommandOptions, SubprocessExecutionError


class RecordingRunner:
    """Runner stub recording commands and failing for selected sub-commands."""

    def __init__(self, fail_on: tuple[str, ...] = ()) -> None:
        self.commands: list[list[str]] = []
        self.options: list[CommandOptions | None] = []
        self.fail_on = fail_on

    def __call__(self, args, *, options: CommandOptions | None = None) -> CompletedProcess[str]:
        command = list(args)
        self.commands.append(command)
        self.options.append(options)
        if any(token in command for token in self.fail_on):
            raise SubprocessExecutionError(command, 2, "", "boom")
        return CompletedProcess(args=command, returncode=0, stdout="", stderr="")


def test_analyze_command_uses_fixed_flags(tmp_path: Path) -> None:
    runner = RecordingRunner()
    engine = CodeQLEngine(runner=runner)
    output = tmp_path / "out" / "results-python.sarif"

    engine.analyze(tmp_path / "db", output, "codeql/python-queries")

    assert runner.commands == [
        [
            "codeql",
            "database",
            "analyze",
            str(tmp_path / "db"),
            "--ram=4000",
            "--format=sarif-latest",
            f"--output={output}",
            "--threat-model=local,remote",
            "codeql/python-queries",
        ],
    ]
    assert output.parent.is_dir()
    assert runner.options[0] is not None and runner.options[0].check


def test_analyze_command_includes_threads_and_ram(tmp_path: Path) -> None:
    engine = CodeQLEngine(executable="/opt/codeql/codeql", ram_mb=8000, threads=4)

    command = engine.analyze_command(tmp_path / "db", tmp_path / "o.sarif", "pack")

    assert command[0] == "/opt/codeql/codeql"
    assert "--ram=8000" in command
    assert command[-2:] == ["--threads=4", "pack"]


def test_analysis_failure_raises_engine_error(tmp_path: Path) -> None:
    engine = CodeQLEngine(runner=RecordingRunner(fail_on=("analyze",)))

    with pytest.raises(EngineError) as excinfo:
        engine.analyze(tmp_path / "db", tmp_path / "o.sarif", "pack")

    assert excinfo.value.returncode == 2
    assert excinfo.value.stderr == "boom"


def test_missing_executable_raises_engine_error(tmp_path: Path) -> None:
    def missing(args, *, options=None):
        raise FileNotFoundError("Executable 'codeql' was not found on PATH")

    with pytest.raises(EngineError):
        CodeQLEngine(runner=missing).analyze(tmp_path / "db", tmp_path / "o.sarif", "pack")


def test_create_database_single_and_cluster(tmp_path: Path) -> None:
    runner = RecordingRunner()
    engine = CodeQLEngine(runner=runner)

    engine.create_database(tmp_path / "src", tmp_path / "db", ["python"])
    engine.create_database(tmp_path / "src", tmp_path / "db", ["python", "javascript"])

    assert runner.commands[0] == [
        "codeql",
        "database",
        "create",
        str(tmp_path / "db"),
        "--language=python",
        f"--source-root={tmp_path / 'src'}",
    ]
    assert "--db-cluster" in runner.commands[1]
    assert runner.commands[1].count("--language=python") == 1
    assert "--language=javascript" in runner.commands[1]


def test_create_database_requires_languages(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        CodeQLEngine(runner=RecordingRunner()).create_database(tmp_path, tmp_path / "db", [])


def test_ensure_query_packs_when_available(logger) -> None:
    runner = RecordingRunner()

    assert CodeQLEngine(runner=runner).ensure_query_packs(logger=logger)
    assert runner.commands == [["codeql", "resolve", "packs"]]


def test_ensure_query_packs_downloads_and_tolerates_failures(logger) -> None:
    runner = RecordingRunner(fail_on=("resolve", "codeql/go-queries"))

    assert not CodeQLEngine(runner=runner).ensure_query_packs(logger=logger)

    downloads = [command[-1] for command in runner.commands if command[1:3] == ["pack", "download"]]
    assert downloads == [
        "codeql/javascript-queries",
        "codeql/python-queries",
        "codeql/java-queries",
        "codeql/csharp-queries",
        "codeql/cpp-queries",
        "codeql/go-queries",
    ]
    assert logger.contains("Failed to download query pack codeql/go-queries", level="debug")


def test_database_paths() -> None:
    root = Path("/work/codeql-db")

    assert database_paths(["python"], root) == {"python": root}
    assert database_paths(["python", "go"], root) == {"python": root / "python", "go": root / "go"}
