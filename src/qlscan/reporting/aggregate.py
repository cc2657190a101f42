# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Merge SARIF fragments and apply rule-id suppressions."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..config import QueryFilter
from ..logging import RunLogger
from .models import SarifReport, SarifRun

JSON_INDENT = 2
SARIF_VERSION = "2.1.0"
SARIF_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"


@dataclass(frozen=True, slots=True)
class FilterResult:
    """Filtered report plus audit counts."""

    report: SarifReport
    removed: int
    kept: int

    @property
    def total(self) -> int:
        """Return the number of findings before filtering."""

        return self.removed + self.kept


def merge_reports(reports: Iterable[SarifReport]) -> SarifReport:
    """Concatenate the ``runs`` of ``reports`` in order.

    Nothing is de-duplicated; identical findings from different fragments all
    survive. Top-level keys other than ``runs`` (``version``, ``$schema``) are
    taken from the first report that carries them.

    Args:
        reports: Reports to merge.

    Returns:
        SarifReport: Merged report.
    """

    runs: list[SarifRun] = []
    extras: dict[str, Any] = {}
    for report in reports:
        runs.extend(report.runs)
        for key, value in (report.model_extra or {}).items():
            extras.setdefault(key, value)
    return SarifReport.model_validate({**extras, "runs": runs})


def filter_report(report: SarifReport, filters: Sequence[QueryFilter]) -> FilterResult:
    """Drop findings whose rule id exactly equals an excluded id.

    Filtering is idempotent; runs without a ``results`` key are left untouched.

    Args:
        report: Merged run-level report.
        filters: Suppression rules.

    Returns:
        FilterResult: New report with removed/kept counts.
    """

    excluded = {query_filter.excluded_rule_id for query_filter in filters}
    removed = 0
    kept = 0
    runs: list[SarifRun] = []
    for run in report.runs:
        if run.results is None:
            runs.append(run)
            continue
        survivors = [result for result in run.results if result.rule_id not in excluded]
        removed += len(run.results) - len(survivors)
        kept += len(survivors)
        runs.append(run.model_copy(update={"results": survivors}) if excluded else run)
    return FilterResult(report=report.model_copy(update={"runs": runs}), removed=removed, kept=kept)


def load_report(path: Path, *, logger: RunLogger) -> SarifReport:
    """Read a fragment, treating a missing or unreadable file as empty.

    Args:
        path: Fragment location.
        logger: Logger receiving a warning for unusable fragments.

    Returns:
        SarifReport: Parsed report, or an empty one.
    """

    if not path.is_file():
        logger.warn(f"SARIF file not found: {path}")
        return SarifReport.empty()
    try:
        return parse_report(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        logger.warn(f"Failed to parse SARIF file {path}: {exc}")
        return SarifReport.empty()


def parse_report(text: str) -> SarifReport:
    """Parse SARIF ``text``.

    Raises:
        ValueError: If ``text`` is not JSON or ``runs`` has the wrong shape.
    """

    document = json.loads(text)
    if not isinstance(document, dict):
        raise ValueError("SARIF document must be a JSON object")
    if document.get("runs") is None:
        document = {**document, "runs": []}
    try:
        return SarifReport.model_validate(document)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc


def write_report(report: SarifReport, path: Path) -> None:
    """Write ``report`` to ``path`` as indented JSON.

    ``version`` and ``$schema`` default to SARIF 2.1.0 when the report lacks them.
    """

    document = report.to_document()
    document.setdefault("version", SARIF_VERSION)
    document.setdefault("$schema", SARIF_SCHEMA)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=JSON_INDENT), encoding="utf-8")


def merge_report_files(paths: Sequence[Path], output: Path, *, logger: RunLogger) -> SarifReport:
    """Merge fragment files into ``output``; unusable fragments contribute nothing."""

    logger.info(f"Merging {len(paths)} SARIF files...")
    merged = merge_reports(load_report(path, logger=logger) for path in paths)
    write_report(merged, output)
    logger.info(f"Merged SARIF saved to: {output}")
    return merged


def count_results(report: SarifReport) -> int:
    """Return the number of findings across every run."""

    return sum(len(run.findings) for run in report.runs)


def has_runs(report: SarifReport) -> bool:
    """Return ``True`` when the report contains at least one run."""

    return bool(report.runs)


def read_results_file(path: Path, *, logger: RunLogger) -> SarifReport | None:
    """Load the run-level report for issue reconciliation.

    Returns:
        SarifReport | None: The report, or ``None`` when the file is missing
        or holds no runs.

    Raises:
        ValueError: If the file exists but is not valid SARIF.
    """

    if not path.is_file():
        logger.warn(f"SARIF file not found: {path}")
        return None
    report = parse_report(path.read_text(encoding="utf-8"))
    if not has_runs(report):
        logger.info("SARIF file contains no runs")
        return None
    logger.info(f"Loaded SARIF with {count_results(report)} results from {path}")
    return report


__all__ = [
    "FilterResult",
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
