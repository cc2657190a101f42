# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Run context carrying every filesystem location a scan touches."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

FILTERED_TREE_NAME: Final[str] = "filtered-repo"
DATABASE_DIR_NAME: Final[str] = "codeql-db"
FRAGMENTS_DIR_NAME: Final[str] = "codeql-results"
RESULTS_FILE_NAME: Final[str] = "results.sarif"


@dataclass(frozen=True, slots=True)
class RunContext:
    """Root paths for a single scan, passed explicitly to each stage."""

    source_root: Path
    work_dir: Path

    @classmethod
    def create(cls, source_root: Path, work_dir: Path | None = None) -> RunContext:
        """Return a context with resolved paths.

        Args:
            source_root: Tree being scanned.
            work_dir: Directory receiving the isolated tree, databases and
                reports; defaults to ``source_root``.
        """

        root = source_root.resolve()
        return cls(source_root=root, work_dir=(work_dir or root).resolve())

    @property
    def filtered_root(self) -> Path:
        """Return the isolated tree receiving admitted files."""

        return self.work_dir / FILTERED_TREE_NAME

    @property
    def database_root(self) -> Path:
        """Return the analysis database location."""

        return self.work_dir / DATABASE_DIR_NAME

    @property
    def fragments_root(self) -> Path:
        """Return the directory holding per-job report fragments."""

        return self.work_dir / FRAGMENTS_DIR_NAME

    @property
    def results_path(self) -> Path:
        """Return the run-level SARIF report location."""

        return self.work_dir / RESULTS_FILE_NAME

    def reserved_prefixes(self) -> tuple[str, ...]:
        """Return work-directory entries nested in the source tree that selection must skip."""

        try:
            relative = self.work_dir.relative_to(self.source_root)
        except ValueError:
            return ()
        base = "" if relative == Path() else f"{relative.as_posix()}/"
        return (
            f"{base}{FILTERED_TREE_NAME}/",
            f"{base}{DATABASE_DIR_NAME}/",
            f"{base}{FRAGMENTS_DIR_NAME}/",
            f"{base}{RESULTS_FILE_NAME}",
        )


__all__ = [
    "DATABASE_DIR_NAME",
    "FILTERED_TREE_NAME",
    "FRAGMENTS_DIR_NAME",
    "RESULTS_FILE_NAME",
    "RunContext",
]
