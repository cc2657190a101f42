# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Fallback retry policy and per-job state tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Final

from ..planning import AnalysisJob


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Which job positions may retry with the family default pack, and how often."""

    max_fallback_attempts: int = 1
    eligible_positions: frozenset[int] = frozenset({0})

    def __post_init__(self) -> None:
        if self.max_fallback_attempts < 0:
            raise ValueError("max_fallback_attempts must be non-negative")
        if any(position < 0 for position in self.eligible_positions):
            raise ValueError("eligible_positions must be non-negative")

    def allows_fallback(self, position: int) -> bool:
        """Return whether the job at ``position`` may fall back after failing."""

        return self.max_fallback_attempts > 0 and position in self.eligible_positions

    def fallback_attempts(self, position: int) -> int:
        """Return how many fallback executions the job at ``position`` receives."""

        return self.max_fallback_attempts if self.allows_fallback(position) else 0


class JobState(str, Enum):
    """Lifecycle of one analysis job."""

    PENDING = "pending"
    RUNNING = "running"
    FAILED_RETRYING = "failed-retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_TRANSITIONS: Final[dict[JobState, frozenset[JobState]]] = {
    JobState.PENDING: frozenset({JobState.RUNNING}),
    JobState.RUNNING: frozenset({JobState.SUCCEEDED, JobState.FAILED_RETRYING, JobState.FAILED}),
    JobState.FAILED_RETRYING: frozenset({JobState.FAILED_RETRYING, JobState.SUCCEEDED, JobState.FAILED}),
    JobState.SUCCEEDED: frozenset(),
    JobState.FAILED: frozenset(),
}
TERMINAL_STATES: Final[frozenset[JobState]] = frozenset({JobState.SUCCEEDED, JobState.FAILED})


class InvalidTransitionError(RuntimeError):
    """Raised when a job is moved to a state its current state cannot reach."""


@dataclass(slots=True)
class JobOutcome:
    """Audit record for one job: state, packs attempted, produced fragment."""

    job: AnalysisJob
    position: int
    state: JobState = JobState.PENDING
    attempted_packs: list[str] = field(default_factory=list)
    fragment: Path | None = None
    errors: list[str] = field(default_factory=list)

    def transition(self, state: JobState) -> None:
        """Move to ``state``.

        Raises:
            InvalidTransitionError: If the transition is not permitted.
        """

        if state not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(f"{self.job.pack}: cannot move from {self.state.value} to {state.value}")
        self.state = state

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` once the job has succeeded or failed."""

        return self.state in TERMINAL_STATES

    @property
    def used_fallback(self) -> bool:
        """Return ``True`` when more than one pack was attempted."""

        return len(self.attempted_packs) > 1


__all__ = [
    "TERMINAL_STATES",
    "InvalidTransitionError",
    "JobOutcome",
    "JobState",
    "RetryPolicy",
]
