# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for SARIF merging, suppression and file helpers."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from helpers.fakes import finding, sarif_document
from qlscan.config import QueryFilter
from qlscan.reporting import (
    SarifReport,
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


def _report(*rule_ids: str, tool: str = "CodeQL") -> SarifReport:
    return SarifReport.model_validate(sarif_document(*(finding(rule_id) for rule_id in rule_ids), tool=tool))


def _rule_ids(report: SarifReport) -> list[str | None]:
    return [result.rule_id for result in report.iter_results()]


def test_merge_concatenates_runs_in_order() -> None:
    first, second, third = _report("a", tool="one"), _report("b", tool="two"), _report("a", tool="three")

    merged = merge_reports([first, second, third])

    assert merged.runs == [*first.runs, *second.runs, *third.runs]
    assert _rule_ids(merged) == ["a", "b", "a"]
    assert merge_reports([merge_reports([first, second]), third]).runs == merged.runs


def test_merge_keeps_top_level_fields_from_first_report() -> None:
    merged = merge_reports([_report("a"), _report("b")])

    document = merged.to_document()
    assert document["version"] == "2.1.0"
    assert len(document["runs"]) == 2


def test_filter_drops_exact_rule_matches_only() -> None:
    report = SarifReport.model_validate(sarif_document(finding("x"), finding("y"), finding("x-extra")))

    filtered = filter_report(report, [QueryFilter.excluding("x")])

    assert _rule_ids(filtered.report) == ["y", "x-extra"]
    assert filtered.removed == 1
    assert filtered.kept == 2
    assert filtered.total == 3


def test_filter_is_idempotent() -> None:
    filters = [QueryFilter.excluding("x")]
    once = filter_report(_report("x", "y", "z"), filters)
    twice = filter_report(once.report, filters)

    assert twice.report == once.report
    assert twice.removed == 0


def test_filter_without_rules_keeps_everything() -> None:
    report = _report("a", "b")

    filtered = filter_report(report, [])

    assert filtered.report == report
    assert filtered.kept == 2


def test_unknown_fields_round_trip(tmp_path: Path) -> None:
    document = sarif_document(finding("a"))
    document["$schema"] = "https://json.schemastore.org/sarif-2.1.0.json"
    document["runs"][0]["results"][0]["partialFingerprints"] = {"primaryLocationLineHash": "abc"}
    document["runs"][0]["artifacts"] = [{"location": {"uri": "src/app.js"}}]
    target = tmp_path / "round.sarif"

    write_report(parse_report(json.dumps(document)), target)

    assert json.loads(target.read_text(encoding="utf-8")) == document


def test_run_without_results_key_survives_filtering() -> None:
    report = parse_report(json.dumps({"runs": [{"tool": {"driver": {"name": "CodeQL"}}}]}))

    filtered = filter_report(report, [QueryFilter.excluding("x")])

    assert filtered.report.to_document() == {"runs": [{"tool": {"driver": {"name": "CodeQL"}}}]}
    assert count_results(filtered.report) == 0


def test_missing_or_invalid_fragments_are_empty_contributions(tmp_path: Path, logger) -> None:
    good = tmp_path / "good.sarif"
    good.write_text(json.dumps(sarif_document(finding("a"))), encoding="utf-8")
    broken = tmp_path / "broken.sarif"
    broken.write_text("{not json", encoding="utf-8")
    output = tmp_path / "merged.sarif"

    merged = merge_report_files([good, tmp_path / "missing.sarif", broken], output, logger=logger)

    assert _rule_ids(merged) == ["a"]
    assert json.loads(output.read_text(encoding="utf-8"))["runs"][0]["results"][0]["ruleId"] == "a"
    assert logger.contains("SARIF file not found", level="warn")
    assert logger.contains("Failed to parse SARIF file", level="warn")
    assert load_report(tmp_path / "absent.sarif", logger=logger).runs == []


def test_parse_report_rejects_non_objects() -> None:
    with pytest.raises(ValueError):
        parse_report("[]")
    with pytest.raises(ValueError):
        parse_report('{"runs": 3}')


def test_read_results_file(tmp_path: Path, logger) -> None:
    path = tmp_path / "results.sarif"
    assert read_results_file(path, logger=logger) is None

    path.write_text(json.dumps({"version": "2.1.0", "runs": []}), encoding="utf-8")
    assert read_results_file(path, logger=logger) is None

    path.write_text(json.dumps(sarif_document(finding("a"), finding("b"))), encoding="utf-8")
    report = read_results_file(path, logger=logger)
    assert report is not None
    assert has_runs(report)
    assert count_results(report) == 2


def test_primary_location_accessors() -> None:
    result = parse_report(json.dumps(sarif_document(finding("a", file="lib/x.py", line=12)))).runs[0].findings[0]
    bare = parse_report(json.dumps(sarif_document({"ruleId": "b"}))).runs[0].findings[0]

    assert (result.primary_file, result.primary_line) == ("lib/x.py", 12)
    assert (bare.primary_file, bare.primary_line) == (None, None)
    assert bare.message.text == ""


def test_written_report_defaults_sarif_header(tmp_path: Path) -> None:
    target = tmp_path / "results.sarif"

    write_report(SarifReport.empty(), target)

    document = json.loads(target.read_text(encoding="utf-8"))
    assert document["version"] == "2.1.0"
    assert document["runs"] == []
    assert "$schema" in document
