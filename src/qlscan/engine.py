# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Invocation of the external CodeQL engine."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from subprocess import CompletedProcess
from typing import Final, Protocol, runtime_checkable

from .config import DEFAULT_RAM_MB
from .errors import EngineError
from .logging import RunLogger
from .process import CommandOptions, SubprocessExecutionError, run_command

SARIF_FORMAT: Final[str] = "sarif-latest"
THREAT_MODEL: Final[str] = "local,remote"
DOWNLOADABLE_PACK_FAMILIES: Final[tuple[str, ...]] = ("javascript", "python", "java", "csharp", "cpp", "go")

CommandRunner = Callable[..., CompletedProcess[str]]


@runtime_checkable
class AnalysisEngine(Protocol):
    """Capability used by the orchestrator: analyse one database with one pack."""

    def analyze(self, database: Path, output: Path, pack: str) -> None:
        """Write a SARIF report for ``database`` to ``output``.

        Raises:
            EngineError: If the engine reports failure.
        """


@runtime_checkable
class ScanEngine(AnalysisEngine, Protocol):
    """Full engine surface used by a scan: database creation and pack checks too."""

    def create_database(self, source_root: Path, database: Path, languages: Sequence[str]) -> None:
        """Create the analysis database for ``languages``."""

    def ensure_query_packs(self, *, logger: RunLogger) -> bool:
        """Make the common query packs available."""


@dataclass(frozen=True, slots=True)
class CodeQLEngine:
    """Thin command builder around the ``codeql`` executable."""

    executable: str = "codeql"
    ram_mb: int = DEFAULT_RAM_MB
    threads: int | None = None
    timeout: float | None = None
    runner: CommandRunner = run_command

    def analyze_command(self, database: Path, output: Path, pack: str) -> list[str]:
        """Return the ``database analyze`` argument list."""

        command = [
            self.executable,
            "database",
            "analyze",
            str(database),
            f"--ram={self.ram_mb}",
            f"--format={SARIF_FORMAT}",
            f"--output={output}",
            f"--threat-model={THREAT_MODEL}",
        ]
        if self.threads is not None:
            command.append(f"--threads={self.threads}")
        command.append(pack)
        return command

    def analyze(self, database: Path, output: Path, pack: str) -> None:
        """Run the analysis for one pack.

        Raises:
            EngineError: If the executable is missing or exits non-zero.
        """

        output.parent.mkdir(parents=True, exist_ok=True)
        self._invoke(self.analyze_command(database, output, pack), action=f"analysis with {pack}")

    def create_database_command(self, source_root: Path, database: Path, languages: Sequence[str]) -> list[str]:
        """Return the ``database create`` argument list.

        More than one language produces a database cluster with one
        sub-database per language.
        """

        command = [self.executable, "database", "create", str(database)]
        if len(languages) > 1:
            command.append("--db-cluster")
        command.extend(f"--language={language}" for language in languages)
        command.append(f"--source-root={source_root}")
        return command

    def create_database(self, source_root: Path, database: Path, languages: Sequence[str]) -> None:
        """Create the analysis database from the isolated tree.

        Raises:
            EngineError: If database creation fails.
        """

        if not languages:
            raise ValueError("at least one language is required to create a database")
        self._invoke(self.create_database_command(source_root, database, languages), action="database creation")

    def ensure_query_packs(self, *, logger: RunLogger) -> bool:
        """Check that query packs resolve, downloading the common ones otherwise.

        Download failures are tolerated per pack.

        Returns:
            bool: ``True`` when packs were already available.
        """

        logger.info("Checking CodeQL query packs availability...")
        try:
            self._invoke([self.executable, "resolve", "packs"], action="pack resolution")
        except EngineError:
            logger.info("Query packs not found in bundle, downloading...")
        else:
            logger.info("Query packs are already available from the CodeQL bundle")
            return True

        for family in DOWNLOADABLE_PACK_FAMILIES:
            pack = f"codeql/{family}-queries"
            logger.info(f"Downloading query pack: {pack}")
            try:
                self._invoke([self.executable, "pack", "download", pack], action=f"download of {pack}")
            except EngineError as exc:
                logger.debug(f"Failed to download query pack {pack}: {exc}")
        logger.info("Query pack download completed")
        return False

    def _invoke(self, command: Sequence[str], *, action: str) -> None:
        options = CommandOptions(check=True, timeout=self.timeout)
        try:
            self.runner(command, options=options)
        except SubprocessExecutionError as exc:
            raise EngineError(f"CodeQL {action} failed: {exc}", returncode=exc.returncode, stderr=exc.stderr) from exc
        except (FileNotFoundError, PermissionError) as exc:
            raise EngineError(f"CodeQL {action} failed: {exc}") from exc


def database_paths(languages: Sequence[str], database_root: Path) -> dict[str, Path]:
    """Return the database location for each language.

    A single language uses ``database_root`` directly; a cluster holds one
    sub-directory per language.
    """

    if len(languages) == 1:
        return {languages[0]: database_root}
    return {language: database_root / language for language in languages}


__all__ = [
    "AnalysisEngine",
    "CodeQLEngine",
    "CommandRunner",
    "ScanEngine",
    "database_paths",
]
