# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""SARIF report models, aggregation and suppression."""

from __future__ import annotations

from .aggregate import (
    FilterResult,
    count_results,
    filter_report,
    has_runs,
    load_report,
    merge_report_files,
    merge_reports,
    parse_report,
    read_results_file,
    write_report,
)
from .models import SarifMessage, SarifReport, SarifResult, SarifRun

__all__ = [
    "FilterResult",
    "SarifMessage",
    "SarifReport",
    "SarifResult",
    "SarifRun",
    "count_results",
    "filter_report",
    "has_runs",
    "load_report",
    "merge_report_files",
    "merge_reports",
    "parse_report",
    "read_results_file",
    "write_report",
]
