# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Run analysis jobs per language with fallback and fragment merging."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from ..engine import AnalysisEngine
from ..errors import EngineError
from ..logging import RunLogger
from ..planning import AnalysisJob, default_pack, output_slot
from ..reporting import SarifReport, load_report, merge_report_files
from .policy import JobOutcome, JobState, RetryPolicy


@dataclass(slots=True)
class LanguageOutcome:
    """Result of analysing one language."""

    language: str
    report: SarifReport
    skipped: bool = False
    jobs: list[JobOutcome] = field(default_factory=list)
    report_path: Path | None = None

    @property
    def fragments(self) -> list[Path]:
        """Return fragments produced by successful jobs, in job order."""

        return [job.fragment for job in self.jobs if job.fragment is not None]


class AnalysisOrchestrator:
    """Coordinates per-language analysis; languages run concurrently, jobs sequentially."""

    def __init__(
        self,
        engine: AnalysisEngine,
        *,
        logger: RunLogger,
        output_dir: Path,
        policy: RetryPolicy | None = None,
    ) -> None:
        """Create an orchestrator.

        Args:
            engine: Capability executing one analysis.
            logger: Logger receiving progress and recoverable failures.
            output_dir: Directory receiving fragments and per-language reports.
            policy: Fallback policy; defaults to one retry for the first job.
        """

        self._engine = engine
        self._logger = logger
        self._output_dir = output_dir
        self._policy = policy or RetryPolicy()

    def run(
        self,
        languages: Sequence[str],
        jobs_by_language: Mapping[str, Sequence[AnalysisJob]],
        db_paths_by_language: Mapping[str, Path],
    ) -> dict[str, SarifReport]:
        """Return one report per analysed language; skipped languages are omitted."""

        outcomes = self.run_detailed(languages, jobs_by_language, db_paths_by_language)
        return {language: outcome.report for language, outcome in outcomes.items() if not outcome.skipped}

    def run_detailed(
        self,
        languages: Sequence[str],
        jobs_by_language: Mapping[str, Sequence[AnalysisJob]],
        db_paths_by_language: Mapping[str, Path],
    ) -> dict[str, LanguageOutcome]:
        """Analyse every language and return full outcomes keyed in input order.

        Args:
            languages: Languages to analyse.
            jobs_by_language: Ordered jobs per language.
            db_paths_by_language: Database location per language.

        Returns:
            dict[str, LanguageOutcome]: Outcome for every requested language.
        """

        if not languages:
            return {}
        self._output_dir.mkdir(parents=True, exist_ok=True)
        if len(languages) > 1:
            self._logger.info(f"Multi-language analysis for: {', '.join(languages)}")
        with ThreadPoolExecutor(max_workers=len(languages)) as executor:
            futures = {
                language: executor.submit(
                    self._run_language,
                    language,
                    list(jobs_by_language.get(language, ())),
                    db_paths_by_language.get(language),
                )
                for language in languages
            }
            return {language: future.result() for language, future in futures.items()}

    def _run_language(
        self,
        language: str,
        jobs: Sequence[AnalysisJob],
        database: Path | None,
    ) -> LanguageOutcome:
        if database is None or not database.exists():
            self._logger.warn(f"Database not found for language: {language} at {database}")
            return LanguageOutcome(language=language, report=SarifReport.empty(), skipped=True)

        self._logger.info(f"Analyzing {language} database with {len(jobs)} query pack(s)")
        outcomes = [self._run_job(position, job, database, total=len(jobs)) for position, job in enumerate(jobs)]
        outcome = LanguageOutcome(language=language, report=SarifReport.empty(), jobs=outcomes)
        fragments = outcome.fragments

        if len(fragments) > 1:
            self._logger.info(f"Merging {len(fragments)} query pack results for {language}...")
            target = self._output_dir / output_slot(language, 0, 1)
            outcome.report = merge_report_files(fragments, target, logger=self._logger)
            outcome.report_path = target
            self._discard(fragments, keep=target)
        elif fragments:
            outcome.report = load_report(fragments[0], logger=self._logger)
            outcome.report_path = fragments[0]
        else:
            self._logger.warn(f"No analysis results were produced for {language}")
        return outcome

    def _run_job(self, position: int, job: AnalysisJob, database: Path, *, total: int) -> JobOutcome:
        outcome = JobOutcome(job=job, position=position)
        destination = self._output_dir / job.output_slot
        self._logger.info(f"Analyzing {job.language} with query pack {position + 1}/{total}: {job.pack}")

        outcome.transition(JobState.RUNNING)
        if self._attempt(outcome, database, destination, job.pack):
            outcome.transition(JobState.SUCCEEDED)
            return outcome

        attempts = self._policy.fallback_attempts(position)
        if attempts == 0:
            outcome.transition(JobState.FAILED)
            return outcome

        fallback = default_pack(job.language)
        for _ in range(attempts):
            outcome.transition(JobState.FAILED_RETRYING)
            self._logger.warn("Trying fallback approach...")
            self._logger.info(f"Using fallback query pack: {fallback}")
            if self._attempt(outcome, database, destination, fallback):
                outcome.transition(JobState.SUCCEEDED)
                return outcome
            self._logger.warn(f"Fallback analysis also failed: {outcome.errors[-1]}")
        outcome.transition(JobState.FAILED)
        return outcome

    def _attempt(self, outcome: JobOutcome, database: Path, destination: Path, pack: str) -> bool:
        outcome.attempted_packs.append(pack)
        try:
            self._engine.analyze(database, destination, pack)
        except EngineError as exc:
            outcome.errors.append(str(exc))
            if len(outcome.attempted_packs) == 1:
                self._logger.warn(f"Failed to analyze with {pack}: {exc}")
            return False
        outcome.fragment = destination
        return True

    def _discard(self, fragments: Sequence[Path], *, keep: Path) -> None:
        for fragment in fragments:
            if fragment == keep:
                continue
            try:
                fragment.unlink(missing_ok=True)
            except OSError as exc:
                self._logger.debug(f"Unable to remove fragment {fragment}: {exc}")


__all__ = ["AnalysisOrchestrator", "LanguageOutcome"]
