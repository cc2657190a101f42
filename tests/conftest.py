# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import pytest

from helpers.fakes import FakeEngine, InMemoryTracker, RecordingLogger


@pytest.fixture
def logger() -> RecordingLogger:
    """Return a logger recording every message."""
    return RecordingLogger()


@pytest.fixture
def engine() -> FakeEngine:
    """Return an engine producing empty SARIF for every pack."""
    return FakeEngine()


@pytest.fixture
def tracker() -> InMemoryTracker:
    """Return an empty in-memory issue tracker."""
    return InMemoryTracker()


@pytest.fixture
def make_tree(tmp_path: Path):
    """Return a factory writing ``{relative_path: content}`` under a fresh root."""

    def _make(files: Mapping[str, str], name: str = "repo") -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        for relative, content in files.items():
            target = root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return root

    return _make
