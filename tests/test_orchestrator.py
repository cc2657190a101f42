# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for per-language analysis orchestration and fallback policy."""

from __future__ import annotations

from pathlib import Path

import pytest

from helpers.fakes import FakeEngine, finding
from qlscan.orchestration import (
    AnalysisOrchestrator,
    InvalidTransitionError,
    JobOutcome,
    JobState,
    RetryPolicy,
)
from qlscan.planning import AnalysisJob, plan_jobs

PY_EXTENDED = "codeql/python-queries:codeql-suites/python-security-extended.qls"
PY_QUALITY = "codeql/python-queries:codeql-suites/python-security-and-quality.qls"
PY_DEFAULT = "codeql/python-queries"


def _databases(tmp_path: Path, *languages: str) -> dict[str, Path]:
    paths = {}
    for language in languages:
        path = tmp_path / "db" / language
        path.mkdir(parents=True)
        paths[language] = path
    return paths


def test_missing_database_skips_language(tmp_path: Path, logger) -> None:
    engine = FakeEngine()
    languages = ["python", "javascript"]
    plan = plan_jobs(languages, ["security-extended"])
    db_paths = {"python": _databases(tmp_path, "python")["python"], "javascript": tmp_path / "db" / "javascript"}

    orchestrator = AnalysisOrchestrator(engine, logger=logger, output_dir=tmp_path / "out")
    reports = orchestrator.run(languages, plan, db_paths)

    assert len(engine.calls) == 1
    assert engine.calls[0][0] == db_paths["python"]
    assert list(reports) == ["python"]
    assert logger.contains("Database not found for language: javascript", level="warn")


def test_first_job_failure_falls_back_once(tmp_path: Path, logger) -> None:
    engine = FakeEngine(failing={PY_EXTENDED}, results_by_pack={PY_DEFAULT: [finding("py/sql-injection")]})
    plan = plan_jobs(["python"], ["security-extended"])

    orchestrator = AnalysisOrchestrator(engine, logger=logger, output_dir=tmp_path / "out")
    outcome = orchestrator.run_detailed(["python"], plan, _databases(tmp_path, "python"))["python"]

    assert engine.packs == [PY_EXTENDED, PY_DEFAULT]
    assert len(outcome.fragments) == 1
    assert outcome.jobs[0].state is JobState.SUCCEEDED
    assert outcome.jobs[0].used_fallback
    assert [result.rule_id for result in outcome.report.iter_results()] == ["py/sql-injection"]
    assert logger.contains("Trying fallback approach...")
    assert logger.contains(f"Using fallback query pack: {PY_DEFAULT}")


def test_later_job_failure_is_not_retried(tmp_path: Path, logger) -> None:
    engine = FakeEngine(failing={PY_QUALITY}, results_by_pack={PY_EXTENDED: [finding("py/a")]})
    plan = plan_jobs(["python"], ["security-extended", "security-and-quality"])

    orchestrator = AnalysisOrchestrator(engine, logger=logger, output_dir=tmp_path / "out")
    outcome = orchestrator.run_detailed(["python"], plan, _databases(tmp_path, "python"))["python"]

    assert engine.packs == [PY_EXTENDED, PY_QUALITY]
    assert [job.state for job in outcome.jobs] == [JobState.SUCCEEDED, JobState.FAILED]
    assert [result.rule_id for result in outcome.report.iter_results()] == ["py/a"]


def test_failed_fallback_drops_job_without_aborting(tmp_path: Path, logger) -> None:
    engine = FakeEngine(failing={PY_EXTENDED, PY_DEFAULT})
    plan = plan_jobs(["python"], ["security-extended"])

    orchestrator = AnalysisOrchestrator(engine, logger=logger, output_dir=tmp_path / "out")
    reports = orchestrator.run(["python"], plan, _databases(tmp_path, "python"))

    assert len(engine.calls) == 2
    assert reports["python"].runs == []
    assert logger.contains("Fallback analysis also failed", level="warn")


def test_multiple_fragments_are_merged_and_discarded(tmp_path: Path, logger) -> None:
    engine = FakeEngine(
        results_by_pack={
            PY_EXTENDED: [finding("py/a"), finding("py/b")],
            PY_QUALITY: [finding("py/a")],
        },
    )
    plan = plan_jobs(["python"], ["security-extended", "security-and-quality"])
    out = tmp_path / "out"

    outcome = AnalysisOrchestrator(engine, logger=logger, output_dir=out).run_detailed(
        ["python"],
        plan,
        _databases(tmp_path, "python"),
    )["python"]

    assert len(outcome.report.runs) == 2
    assert [result.rule_id for result in outcome.report.iter_results()] == ["py/a", "py/b", "py/a"]
    assert outcome.report_path == out / "results-python.sarif"
    assert sorted(path.name for path in out.iterdir()) == ["results-python.sarif"]


def test_zero_fragments_yield_empty_report(tmp_path: Path, logger) -> None:
    engine = FakeEngine(failing={PY_EXTENDED})
    plan = plan_jobs(["python"], ["security-extended"])

    orchestrator = AnalysisOrchestrator(
        engine,
        logger=logger,
        output_dir=tmp_path / "out",
        policy=RetryPolicy(max_fallback_attempts=0),
    )
    outcome = orchestrator.run_detailed(["python"], plan, _databases(tmp_path, "python"))["python"]

    assert engine.packs == [PY_EXTENDED]
    assert not outcome.skipped
    assert outcome.report.runs == []
    assert logger.contains("No analysis results were produced for python")


def test_languages_run_independently(tmp_path: Path, logger) -> None:
    engine = FakeEngine()
    languages = ["python", "go", "java"]
    plan = plan_jobs(languages, ["security-extended"])

    reports = AnalysisOrchestrator(engine, logger=logger, output_dir=tmp_path / "out").run(
        languages,
        plan,
        _databases(tmp_path, *languages),
    )

    assert list(reports) == languages
    assert sorted(output.name for _, output, _ in engine.calls) == [
        "results-go.sarif",
        "results-java.sarif",
        "results-python.sarif",
    ]


def test_policy_can_extend_eligibility_and_attempts(tmp_path: Path, logger) -> None:
    engine = FakeEngine(failing={PY_EXTENDED, PY_QUALITY, PY_DEFAULT})
    plan = plan_jobs(["python"], ["security-extended", "security-and-quality"])
    policy = RetryPolicy(max_fallback_attempts=2, eligible_positions=frozenset({0, 1}))

    outcome = AnalysisOrchestrator(engine, logger=logger, output_dir=tmp_path / "out", policy=policy).run_detailed(
        ["python"],
        plan,
        _databases(tmp_path, "python"),
    )["python"]

    assert engine.packs == [PY_EXTENDED, PY_DEFAULT, PY_DEFAULT, PY_QUALITY, PY_DEFAULT, PY_DEFAULT]
    assert all(job.state is JobState.FAILED for job in outcome.jobs)


def test_retry_policy_defaults() -> None:
    policy = RetryPolicy()

    assert policy.allows_fallback(0)
    assert not policy.allows_fallback(1)
    assert policy.fallback_attempts(0) == 1
    assert policy.fallback_attempts(3) == 0
    assert not RetryPolicy(max_fallback_attempts=0).allows_fallback(0)


def test_retry_policy_rejects_negative_values() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(max_fallback_attempts=-1)
    with pytest.raises(ValueError):
        RetryPolicy(eligible_positions=frozenset({-1}))


def test_job_outcome_enforces_state_machine() -> None:
    outcome = JobOutcome(job=AnalysisJob("go", "codeql/go-queries", "results-go.sarif"), position=0)

    with pytest.raises(InvalidTransitionError):
        outcome.transition(JobState.SUCCEEDED)
    outcome.transition(JobState.RUNNING)
    outcome.transition(JobState.FAILED_RETRYING)
    outcome.transition(JobState.SUCCEEDED)
    assert outcome.is_terminal
    with pytest.raises(InvalidTransitionError):
        outcome.transition(JobState.RUNNING)
