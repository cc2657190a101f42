# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point for qlscan."""

from __future__ import annotations

from pathlib import Path

import typer

from ..config import DEFAULT_RAM_MB, ScanConfig
from ..config_loader import load_config
from ..context import RESULTS_FILE_NAME, RunContext
from ..engine import CodeQLEngine, ScanEngine
from ..errors import QlscanError
from ..issues import IssueTracker, JsonIssueTracker
from ..logging import ConsoleLogger
from ..pipeline import ScanOptions, build_plan, reconcile_results_file, run_scan
from .options import (
    CODEQL_OPTION,
    CONFIG_FILE_OPTION,
    CONFIG_OPTION,
    DEBUG_OPTION,
    EMOJI_OPTION,
    ISSUES_OPTION,
    JOBS_OPTION,
    LANGUAGES_OPTION,
    LEDGER_OPTION,
    PROFILES_OPTION,
    RAM_OPTION,
    ROOT_OPTION,
    SARIF_OPTION,
    THREADS_OPTION,
    TRACKER_FILE_OPTION,
    WORK_DIR_OPTION,
)
from .typer_ext import create_typer

app = create_typer(
    name="qlscan",
    help="Filtered multi-language CodeQL scans with issue reconciliation.",
    no_args_is_help=True,
    add_completion=False,
)


def build_cli_logger(*, emoji: bool, debug: bool = False) -> ConsoleLogger:
    """Return the console logger used by every command."""

    return ConsoleLogger(use_emoji=emoji, debug_enabled=debug)


def build_engine(*, codeql: str, ram: int, threads: int | None) -> ScanEngine:
    """Return the engine used by ``qlscan run``."""

    return CodeQLEngine(executable=codeql, ram_mb=ram, threads=threads)


def build_tracker(tracker_file: Path | None) -> IssueTracker | None:
    """Return the issue tracker backing reconciliation, if one was requested."""

    return JsonIssueTracker(tracker_file) if tracker_file is not None else None


def _load(config_file: Path | None, config: str | None, logger: ConsoleLogger) -> ScanConfig | None:
    return load_config(config_file=config_file, config_text=config, logger=logger)


@app.command("run")
def run_command(
    root: ROOT_OPTION = Path("."),
    work_dir: WORK_DIR_OPTION = None,
    languages: LANGUAGES_OPTION = None,
    profiles: PROFILES_OPTION = None,
    config: CONFIG_OPTION = None,
    config_file: CONFIG_FILE_OPTION = None,
    codeql: CODEQL_OPTION = "codeql",
    ram: RAM_OPTION = DEFAULT_RAM_MB,
    threads: THREADS_OPTION = None,
    jobs: JOBS_OPTION = 1,
    tracker_file: TRACKER_FILE_OPTION = None,
    issues: ISSUES_OPTION = True,
    emoji: EMOJI_OPTION = True,
    debug: DEBUG_OPTION = False,
) -> None:
    """Select files, analyse every language, write SARIF and reconcile issues.

    Raises:
        typer.Exit: Non-zero when the scan fails.
    """

    logger = build_cli_logger(emoji=emoji, debug=debug)
    context = RunContext.create(root, work_dir)
    try:
        scan_config = _load(config_file, config, logger)
        result = run_scan(
            context,
            scan_config,
            ScanOptions(languages=languages, profiles=profiles, create_issues=issues, copy_jobs=jobs),
            engine=build_engine(codeql=codeql, ram=ram, threads=threads),
            tracker=build_tracker(tracker_file),
            logger=logger,
        )
    except QlscanError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc

    logger.ok(
        f"Analysis complete: {result.result_count} results, "
        f"{len(result.created_issues)} new issue(s), report at {result.results_path}",
    )


@app.command("plan")
def plan_command(
    languages: LANGUAGES_OPTION = None,
    profiles: PROFILES_OPTION = None,
    config: CONFIG_OPTION = None,
    config_file: CONFIG_FILE_OPTION = None,
    emoji: EMOJI_OPTION = True,
    debug: DEBUG_OPTION = False,
) -> None:
    """Show the analysis jobs a scan would run without invoking the engine.

    Raises:
        typer.Exit: Non-zero when the configuration is invalid.
    """

    logger = build_cli_logger(emoji=emoji, debug=debug)
    try:
        scan_config = _load(config_file, config, logger)
        _, plan = build_plan(ScanOptions(languages=languages, profiles=profiles), scan_config)
    except QlscanError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc

    for language, language_jobs in plan.items():
        logger.section(language)
        for job in language_jobs:
            logger.info(f"{job.pack} -> {job.output_slot}")


@app.command("issues")
def issues_command(
    tracker_file: LEDGER_OPTION,
    sarif: SARIF_OPTION = Path(RESULTS_FILE_NAME),
    emoji: EMOJI_OPTION = True,
    debug: DEBUG_OPTION = False,
) -> None:
    """Create issues for findings in an existing SARIF report.

    Raises:
        typer.Exit: Non-zero when the report or the tracker cannot be read.
    """

    logger = build_cli_logger(emoji=emoji, debug=debug)
    try:
        created = reconcile_results_file(sarif, tracker=JsonIssueTracker(tracker_file), logger=logger)
    except QlscanError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc

    logger.ok(f"Issue reconciliation complete: {len(created)} new issue(s)")


__all__ = ["app", "build_cli_logger", "build_engine", "build_tracker"]
