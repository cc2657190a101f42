"""Test doubles for the logger, analysis engine and issue tracker."""

from __future__ import annotations

import json
import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from qlscan.errors import EngineError, TrackerError
from qlscan.issues import CreatedIssue, IssueDraft, IssueState, TrackedIssue


def finding(rule_id: str, file: str = "src/app.js", line: int = 1, message: str = "Problem") -> dict[str, Any]:
    return {
        "ruleId": rule_id,
        "message": {"text": message},
        "locations": [
            {
                "physicalLocation": {
                    "artifactLocation": {"uri": file},
                    "region": {"startLine": line},
                },
            },
        ],
    }


def sarif_document(*results: Mapping[str, Any], tool: str = "CodeQL") -> dict[str, Any]:
    return {
        "version": "2.1.0",
        "runs": [{"tool": {"driver": {"name": tool}}, "results": list(results)}],
    }


@dataclass
class RecordingLogger:
    """Logger capturing ``(level, message)`` pairs."""

    records: list[tuple[str, str]] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def _record(self, level: str, message: str) -> None:
        with self._lock:
            self.records.append((level, message))

    def info(self, message: str) -> None:
        self._record("info", message)

    def ok(self, message: str) -> None:
        self._record("ok", message)

    def warn(self, message: str) -> None:
        self._record("warn", message)

    def fail(self, message: str) -> None:
        self._record("fail", message)

    def debug(self, message: str) -> None:
        self._record("debug", message)

    def messages(self, level: str | None = None) -> list[str]:
        return [message for recorded, message in self.records if level is None or recorded == level]

    def contains(self, fragment: str, level: str | None = None) -> bool:
        return any(fragment in message for message in self.messages(level))


@dataclass
class FakeEngine:
    """Engine writing canned SARIF per pack; packs in ``failing`` raise."""

    results_by_pack: Mapping[str, Sequence[Mapping[str, Any]]] = field(default_factory=dict)
    failing: set[str] = field(default_factory=set)
    calls: list[tuple[Path, Path, str]] = field(default_factory=list)
    databases: list[tuple[Path, Path, tuple[str, ...]]] = field(default_factory=list)
    pack_checks: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def analyze(self, database: Path, output: Path, pack: str) -> None:
        with self._lock:
            self.calls.append((database, output, pack))
        if pack in self.failing:
            raise EngineError(f"analysis failed for {pack}", returncode=2)
        output.parent.mkdir(parents=True, exist_ok=True)
        document = sarif_document(*self.results_by_pack.get(pack, ()), tool=pack)
        output.write_text(json.dumps(document), encoding="utf-8")

    def create_database(self, source_root: Path, database: Path, languages: Sequence[str]) -> None:
        self.databases.append((source_root, database, tuple(languages)))
        if len(languages) == 1:
            database.mkdir(parents=True, exist_ok=True)
            return
        for language in languages:
            (database / language).mkdir(parents=True, exist_ok=True)

    def ensure_query_packs(self, *, logger: Any) -> bool:
        self.pack_checks += 1
        return True

    @property
    def packs(self) -> list[str]:
        return [pack for _, _, pack in self.calls]


@dataclass
class InMemoryTracker:
    """Tracker holding issues in memory; titles in ``reject`` fail to create."""

    issues: list[TrackedIssue] = field(default_factory=list)
    reject: set[str] = field(default_factory=set)
    created: list[IssueDraft] = field(default_factory=list)
    list_error: str | None = None

    @classmethod
    def with_titles(cls, titles: Iterable[tuple[str, IssueState]]) -> InMemoryTracker:
        return cls(issues=[TrackedIssue(title=title, state=state) for title, state in titles])

    def list_issues(self) -> list[TrackedIssue]:
        if self.list_error is not None:
            raise TrackerError(self.list_error)
        return list(self.issues)

    def create_issue(self, draft: IssueDraft) -> CreatedIssue:
        if draft.title in self.reject:
            raise TrackerError(f"rejected {draft.title}")
        self.created.append(draft)
        self.issues.append(TrackedIssue(title=draft.title, state=IssueState.OPEN))
        return CreatedIssue(number=len(self.created), title=draft.title)
