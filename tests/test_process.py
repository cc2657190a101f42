# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the subprocess wrapper."""

from __future__ import annotations

import sys

import pytest

from qlscan.process import CommandOptions, SubprocessExecutionError, normalize_args, run_command


def test_run_command_captures_output() -> None:
    completed = run_command([sys.executable, "-c", "print('hello')"])

    assert completed.returncode == 0
    assert completed.stdout.strip() == "hello"


def test_run_command_raises_on_failure_when_checking() -> None:
    with pytest.raises(SubprocessExecutionError) as excinfo:
        run_command([sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"])

    assert excinfo.value.returncode == 3
    assert excinfo.value.stderr == "bad"


def test_run_command_without_check_returns_status() -> None:
    completed = run_command([sys.executable, "-c", "raise SystemExit(5)"], options=CommandOptions(check=False))

    assert completed.returncode == 5


def test_run_command_timeout_reports_124() -> None:
    options = CommandOptions(check=False, timeout=0.2)

    completed = run_command([sys.executable, "-c", "import time; time.sleep(5)"], options=options)

    assert completed.returncode == 124
    assert "timed out" in completed.stderr


def test_normalize_args_rejects_unknown_and_empty() -> None:
    with pytest.raises(FileNotFoundError):
        normalize_args(["qlscan-definitely-missing-binary"])
    with pytest.raises(ValueError):
        normalize_args([])
