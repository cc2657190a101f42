# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared option declarations for the qlscan CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from ..config import DEFAULT_RAM_MB

ROOT_OPTION = Annotated[
    Path,
    typer.Option("--root", "-r", help="Source tree to scan.", file_okay=False),
]
WORK_DIR_OPTION = Annotated[
    Path | None,
    typer.Option("--work-dir", "-w", help="Directory for the isolated tree, database and reports."),
]
LANGUAGES_OPTION = Annotated[
    str | None,
    typer.Option("--languages", "-l", help="Comma-separated languages (default: javascript)."),
]
PROFILES_OPTION = Annotated[
    str | None,
    typer.Option("--profiles", "-p", help="Comma-separated query profiles (default: security-and-quality)."),
]
CONFIG_OPTION = Annotated[
    str | None,
    typer.Option("--config", help="Inline YAML configuration; overrides keys from --config-file."),
]
CONFIG_FILE_OPTION = Annotated[
    Path | None,
    typer.Option("--config-file", "-c", help="Path to a YAML configuration file.", dir_okay=False),
]
CODEQL_OPTION = Annotated[
    str,
    typer.Option("--codeql", help="CodeQL executable to invoke."),
]
RAM_OPTION = Annotated[
    int,
    typer.Option("--ram", min=1, help=f"Memory for analysis in MB (default: {DEFAULT_RAM_MB})."),
]
THREADS_OPTION = Annotated[
    int | None,
    typer.Option("--threads", min=0, help="Engine thread count; omitted uses the engine default."),
]
JOBS_OPTION = Annotated[
    int,
    typer.Option("--jobs", "-j", min=1, help="Concurrent file copies during selection."),
]
TRACKER_FILE_OPTION = Annotated[
    Path | None,
    typer.Option("--tracker-file", help="JSON issue ledger; omitted skips issue creation.", dir_okay=False),
]
SARIF_OPTION = Annotated[
    Path,
    typer.Option("--sarif", "-s", help="Run-level SARIF report to reconcile.", dir_okay=False),
]
LEDGER_OPTION = Annotated[
    Path,
    typer.Option("--tracker-file", help="JSON issue ledger receiving new issues.", dir_okay=False),
]
ISSUES_OPTION = Annotated[
    bool,
    typer.Option("--issues/--no-issues", help="Create issues for new findings."),
]
EMOJI_OPTION = Annotated[
    bool,
    typer.Option("--emoji/--no-emoji", help="Toggle emoji output."),
]
DEBUG_OPTION = Annotated[
    bool,
    typer.Option("--debug", help="Enable debug logging."),
]

__all__ = [
    "CODEQL_OPTION",
    "CONFIG_FILE_OPTION",
    "CONFIG_OPTION",
    "DEBUG_OPTION",
    "EMOJI_OPTION",
    "ISSUES_OPTION",
    "JOBS_OPTION",
    "LANGUAGES_OPTION",
    "LEDGER_OPTION",
    "PROFILES_OPTION",
    "RAM_OPTION",
    "ROOT_OPTION",
    "SARIF_OPTION",
    "THREADS_OPTION",
    "TRACKER_FILE_OPTION",
    "WORK_DIR_OPTION",
]
