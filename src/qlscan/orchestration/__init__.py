# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Per-language analysis orchestration."""

from __future__ import annotations

from .orchestrator import AnalysisOrchestrator, LanguageOutcome
from .policy import TERMINAL_STATES, InvalidTransitionError, JobOutcome, JobState, RetryPolicy

__all__ = [
    "TERMINAL_STATES",
    "AnalysisOrchestrator",
    "InvalidTransitionError",
    "JobOutcome",
    "JobState",
    "LanguageOutcome",
    "RetryPolicy",
]
