# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Issue tracker capability and a JSON ledger implementation."""

from __future__ import annotations

import json
import threading
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import TrackerError


class IssueState(str, Enum):
    """State of a tracked issue as reported by the tracker."""

    OPEN = "open"
    CLOSED = "closed"


class TrackedIssue(BaseModel):
    """An issue already known to the tracker."""

    model_config = ConfigDict(frozen=True)

    title: str
    state: IssueState


class IssueDraft(BaseModel):
    """Payload submitted when creating an issue."""

    model_config = ConfigDict(frozen=True)

    title: str
    body: str
    labels: tuple[str, ...] = ()


class CreatedIssue(BaseModel):
    """Issue returned by the tracker after creation."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    url: str | None = None


@runtime_checkable
class IssueTracker(Protocol):
    """Opaque tracker: list every issue, create new ones."""

    def list_issues(self) -> Sequence[TrackedIssue]:
        """Return open and closed issues.

        Raises:
            TrackerError: If the tracker cannot be queried.
        """

    def create_issue(self, draft: IssueDraft) -> CreatedIssue:
        """Create an issue from ``draft``.

        Raises:
            TrackerError: If the tracker rejects the request.
        """


class LedgerEntry(BaseModel):
    """Stored form of one issue inside the ledger file."""

    model_config = ConfigDict(extra="ignore")

    number: int
    title: str
    state: IssueState = IssueState.OPEN
    body: str = ""
    labels: list[str] = Field(default_factory=list)


class Ledger(BaseModel):
    """Top-level ledger document."""

    issues: list[LedgerEntry] = Field(default_factory=list)


class JsonIssueTracker:
    """Tracker persisting issues to a local JSON file.

    Closing an issue is done by editing its ``state`` in the file; this
    tracker never changes the state of an existing entry.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        """Return the ledger location."""

        return self._path

    def list_issues(self) -> list[TrackedIssue]:
        with self._lock:
            ledger = self._load()
        return [TrackedIssue(title=entry.title, state=entry.state) for entry in ledger.issues]

    def create_issue(self, draft: IssueDraft) -> CreatedIssue:
        with self._lock:
            ledger = self._load()
            number = max((entry.number for entry in ledger.issues), default=0) + 1
            ledger.issues.append(
                LedgerEntry(number=number, title=draft.title, body=draft.body, labels=list(draft.labels)),
            )
            self._save(ledger)
        return CreatedIssue(number=number, title=draft.title, url=f"{self._path.as_uri()}#{number}")

    def _load(self) -> Ledger:
        if not self._path.is_file():
            return Ledger()
        try:
            return Ledger.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            raise TrackerError(f"Unable to read issue ledger {self._path}: {exc}") from exc

    def _save(self, ledger: Ledger) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(ledger.model_dump(mode="json"), indent=2), encoding="utf-8")
        except OSError as exc:
            raise TrackerError(f"Unable to write issue ledger {self._path}: {exc}") from exc


__all__ = [
    "CreatedIssue",
    "IssueDraft",
    "IssueState",
    "IssueTracker",
    "JsonIssueTracker",
    "TrackedIssue",
]
