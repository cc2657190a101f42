# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""End-to-end scan: select, analyse, aggregate, filter, reconcile."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .config import ScanConfig
from .context import RunContext
from .discovery.selection import FileSelector, SelectionResult
from .engine import ScanEngine, database_paths
from .errors import ReportError
from .issues import CreatedIssue, IssueReconciler, IssueTracker
from .logging import RunLogger
from .orchestration import AnalysisOrchestrator, LanguageOutcome, RetryPolicy
from .planning import AnalysisJob, parse_languages, parse_profiles, plan_jobs
from .reporting import SarifReport, count_results, filter_report, merge_reports, read_results_file, write_report


@dataclass(frozen=True, slots=True)
class ScanOptions:
    """Run-level inputs that do not come from the YAML configuration.

    ``languages`` given here take precedence over the configuration's
    ``languages`` key; ``None`` defers to it.
    """

    languages: str | None = None
    profiles: str | None = None
    create_database: bool = True
    ensure_packs: bool = True
    create_issues: bool = True
    copy_jobs: int = 1
    policy: RetryPolicy = field(default_factory=RetryPolicy)


@dataclass(slots=True)
class ScanResult:
    """Everything a caller may want to audit after a scan."""

    selection: SelectionResult
    languages: list[str]
    plan: dict[str, list[AnalysisJob]]
    outcomes: dict[str, LanguageOutcome]
    report: SarifReport
    results_path: Path
    filtered_out: int = 0
    created_issues: list[CreatedIssue] = field(default_factory=list)

    @property
    def result_count(self) -> int:
        """Return the number of findings in the written report."""

        return count_results(self.report)


def resolve_languages(options: ScanOptions, config: ScanConfig | None) -> list[str]:
    """Return the languages to analyse, preferring explicit options over config."""

    if options.languages is not None and options.languages.strip():
        return parse_languages(options.languages)
    if config is not None and config.languages:
        return parse_languages(config.languages)
    return parse_languages(None)


def build_plan(
    options: ScanOptions,
    config: ScanConfig | None,
    *,
    logger: RunLogger | None = None,
) -> tuple[list[str], dict[str, list[AnalysisJob]]]:
    """Return the languages and their job lists for a scan."""

    languages = resolve_languages(options, config)
    packs: Sequence[str] | None = config.packs if config is not None and config.packs else None
    plan = plan_jobs(languages, parse_profiles(options.profiles), packs, logger=logger)
    return languages, plan


def run_scan(
    context: RunContext,
    config: ScanConfig | None,
    options: ScanOptions,
    *,
    engine: ScanEngine,
    tracker: IssueTracker | None,
    logger: RunLogger,
) -> ScanResult:
    """Execute a full scan inside ``context``.

    Args:
        context: Locations of the scanned tree and run artefacts.
        config: Validated configuration, or ``None`` to admit everything.
        options: Run-level inputs.
        engine: Engine used for database creation and analysis.
        tracker: Issue tracker; ``None`` skips reconciliation.
        logger: Logger handed to every stage.

    Returns:
        ScanResult: Selection, plan, per-language outcomes and the final report.

    Raises:
        SelectionError: If copying admitted files fails.
        EngineError: If database creation fails.
        TrackerError: If existing issues cannot be listed.
    """

    logger.info(f"Scanning {context.source_root}")
    selector = FileSelector(
        logger=logger,
        jobs=options.copy_jobs,
        reserved_prefixes=context.reserved_prefixes(),
    )
    selection = selector.select(
        context.source_root,
        config.selection() if config is not None else None,
        context.filtered_root,
    )

    languages, plan = build_plan(options, config, logger=logger)
    db_paths = database_paths(languages, context.database_root)
    if options.create_database:
        logger.info(f"Creating CodeQL database for: {', '.join(languages)}")
        engine.create_database(context.filtered_root, context.database_root, languages)
    if options.ensure_packs:
        engine.ensure_query_packs(logger=logger)

    orchestrator = AnalysisOrchestrator(
        engine,
        logger=logger,
        output_dir=context.fragments_root,
        policy=options.policy,
    )
    outcomes = orchestrator.run_detailed(languages, plan, db_paths)
    merged = merge_reports(outcome.report for outcome in outcomes.values() if not outcome.skipped)

    filters = config.query_filters if config is not None else ()
    filtered = filter_report(merged, filters)
    if filters:
        logger.info(f"Query filters applied: {filtered.removed} results filtered out of {filtered.total}")
    write_report(filtered.report, context.results_path)
    logger.ok(f"SARIF results written to {context.results_path} ({filtered.kept} results)")

    result = ScanResult(
        selection=selection,
        languages=languages,
        plan=plan,
        outcomes=outcomes,
        report=filtered.report,
        results_path=context.results_path,
        filtered_out=filtered.removed,
    )
    if options.create_issues and tracker is not None:
        result.created_issues = IssueReconciler(tracker, logger=logger).reconcile(filtered.report)
    return result


def reconcile_results_file(path: Path, *, tracker: IssueTracker, logger: RunLogger) -> list[CreatedIssue]:
    """Reconcile the findings of a previously written results file.

    A missing file or one without runs creates nothing.

    Raises:
        ReportError: If the file cannot be read or is not valid SARIF.
        TrackerError: If the tracker cannot list existing issues.
    """

    try:
        report = read_results_file(path, logger=logger)
    except (OSError, ValueError) as exc:
        raise ReportError(f"Unable to read SARIF results {path}: {exc}") from exc
    if report is None:
        return []
    return IssueReconciler(tracker, logger=logger).reconcile(report)


__all__ = [
    "ScanOptions",
    "ScanResult",
    "build_plan",
    "reconcile_results_file",
    "resolve_languages",
    "run_scan",
]
