# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Select the files that participate in a scan and copy them into an isolated tree."""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterator, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from ..config import SelectionConfig
from ..errors import SelectionError
from ..logging import RunLogger
from .rules import Rule, RuleKind, matches, matches_any

SYSTEM_PREFIXES: Final[tuple[str, ...]] = (".git/", ".github/", "node_modules/")
MAX_SAMPLE_EXCLUSIONS: Final[int] = 5


@dataclass(slots=True)
class SelectionResult:
    """Outcome of a selection pass, always populated for auditing."""

    destination: Path
    included: list[str] = field(default_factory=list)
    excluded: list[str] = field(default_factory=list)

    @property
    def included_count(self) -> int:
        """Return the number of admitted files."""

        return len(self.included)

    @property
    def excluded_count(self) -> int:
        """Return the number of rejected files."""

        return len(self.excluded)

    @property
    def sample_exclusions(self) -> list[str]:
        """Return the first few rejected paths in scan order."""

        return self.excluded[:MAX_SAMPLE_EXCLUSIONS]


def include_rule_matches(relative_path: str, rule: Rule) -> bool:
    """Return whether an include ``rule`` admits ``relative_path``.

    Directory-prefix includes also admit through their implicit ``pattern/**`` glob.
    """

    if rule.kind is RuleKind.GLOB:
        return matches(relative_path, rule)
    return matches(relative_path, rule) or matches(relative_path, rule.as_descendant_glob())


def is_admitted(relative_path: str, config: SelectionConfig) -> bool:
    """Return whether ``relative_path`` survives include and exclude rules.

    Exclude rules always win over include rules.

    Args:
        relative_path: ``/``-separated path relative to the scanned root.
        config: Selection rules.

    Returns:
        bool: ``True`` when the path should be copied.
    """

    if config.include_rules and not any(include_rule_matches(relative_path, rule) for rule in config.include_rules):
        return False
    return not matches_any(relative_path, config.exclude_rules)


class FileSelector:
    """Walk a tree once, classify each file and copy admitted files."""

    def __init__(
        self,
        *,
        logger: RunLogger,
        jobs: int = 1,
        reserved_prefixes: Sequence[str] = (),
    ) -> None:
        """Create a selector.

        Args:
            logger: Logger receiving inclusion/exclusion audit messages.
            jobs: Maximum number of concurrent copy operations.
            reserved_prefixes: Additional relative prefixes skipped like
                version-control metadata (e.g. the scan's own work directory).
        """

        self._logger = logger
        self._jobs = max(1, jobs)
        self._reserved = (*SYSTEM_PREFIXES, *reserved_prefixes)

    def select(self, root: Path, config: SelectionConfig | None, destination: Path) -> SelectionResult:
        """Copy files admitted by ``config`` from ``root`` into ``destination``.

        Args:
            root: Tree to scan.
            config: Selection rules; ``None`` admits every non-reserved file.
            destination: Isolated tree, recreated for this run.

        Returns:
            SelectionResult: Admitted and rejected relative paths.

        Raises:
            SelectionError: If any admitted file cannot be copied.
            ValueError: If ``destination`` is the scanned root itself.
        """

        root = root.resolve()
        destination = destination.resolve()
        if destination == root:
            raise ValueError("the isolated tree must differ from the scanned root")
        rules = config or SelectionConfig()
        self._prepare_destination(destination)
        self._logger.info(f"File filtering config: {rules.model_dump_json() if config else 'none'}")

        result = SelectionResult(destination=destination)
        pending: list[str] = []
        for relative in self._iter_files(root):
            if is_admitted(relative, rules):
                result.included.append(relative)
                pending.append(relative)
                self._logger.debug(f"Including: {relative}")
                continue
            result.excluded.append(relative)
            self._logger.debug(f"Excluding: {relative}")
            if result.excluded_count <= MAX_SAMPLE_EXCLUSIONS:
                self._logger.info(f"Sample exclusion: {relative}")

        self._copy_all(root, destination, pending)
        self._logger.info(
            f"Total files after filtering: {result.included_count} included, {result.excluded_count} excluded",
        )
        return result

    def _iter_files(self, root: Path) -> Iterator[str]:
        """Yield relative POSIX paths of every non-directory entry under ``root``."""

        for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
            current = Path(dirpath)
            relative_dir = current.relative_to(root).as_posix()
            prefix = "" if relative_dir == "." else f"{relative_dir}/"
            dirnames[:] = sorted(
                name
                for name in dirnames
                if not (current / name).is_symlink() and not self._is_reserved(f"{prefix}{name}/")
            )
            for filename in sorted(filenames):
                relative = f"{prefix}{filename}"
                if not self._is_reserved(relative):
                    yield relative

    def _is_reserved(self, relative: str) -> bool:
        return any(relative.startswith(prefix) for prefix in self._reserved)

    @staticmethod
    def _prepare_destination(destination: Path) -> None:
        if destination.exists():
            shutil.rmtree(destination)
        destination.mkdir(parents=True)

    def _copy_all(self, root: Path, destination: Path, relatives: Sequence[str]) -> None:
        if self._jobs == 1 or len(relatives) <= 1:
            for relative in relatives:
                _copy_one(root, destination, relative)
            return
        with ThreadPoolExecutor(max_workers=self._jobs) as executor:
            futures: list[Future[None]] = [
                executor.submit(_copy_one, root, destination, relative) for relative in relatives
            ]
            for future in futures:
                future.result()


def _copy_one(root: Path, destination: Path, relative: str) -> None:
    """Copy one file preserving its relative location; parents are created on demand."""

    target = destination / relative
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(root / relative, target, follow_symlinks=False)
    except OSError as exc:
        raise SelectionError(f"Failed to copy {relative} into {destination}: {exc}") from exc


__all__ = [
    "MAX_SAMPLE_EXCLUSIONS",
    "SYSTEM_PREFIXES",
    "FileSelector",
    "SelectionResult",
    "include_rule_matches",
    "is_admitted",
]
