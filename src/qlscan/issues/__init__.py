# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Issue reconciliation for analysis findings."""

from __future__ import annotations

from .fingerprint import FINGERPRINT_LENGTH, finding_fingerprint, fingerprint, issue_title
from .reconciler import FINDING_LABEL, IssueReconciler, render_body
from .tracker import CreatedIssue, IssueDraft, IssueState, IssueTracker, JsonIssueTracker, TrackedIssue

__all__ = [
    "FINDING_LABEL",
    "FINGERPRINT_LENGTH",
    "CreatedIssue",
    "IssueDraft",
    "IssueReconciler",
    "IssueState",
    "IssueTracker",
    "JsonIssueTracker",
    "TrackedIssue",
    "finding_fingerprint",
    "fingerprint",
    "issue_title",
    "render_body",
]
