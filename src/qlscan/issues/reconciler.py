# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Turn findings into tracker issues without duplicating or reopening."""

from __future__ import annotations

from typing import Final

from ..errors import TrackerError
from ..logging import RunLogger
from ..reporting import SarifReport, SarifResult
from .fingerprint import UNKNOWN_FILE, UNKNOWN_RULE, finding_fingerprint, issue_title
from .tracker import CreatedIssue, IssueDraft, IssueState, IssueTracker

FINDING_LABEL: Final[str] = "codeql-finding"


def render_body(result: SarifResult, digest: str) -> str:
    """Return the markdown issue body for ``result``."""

    file = result.primary_file or UNKNOWN_FILE
    line = result.primary_line
    location = f"{file}:{line}" if line is not None else file
    message = result.message.text or "No description provided."
    return "\n".join(
        [
            "## CodeQL finding",
            "",
            message,
            "",
            f"- **Rule:** `{result.rule_id or UNKNOWN_RULE}`",
            f"- **Location:** `{location}`",
            f"- **Fingerprint:** `{digest}`",
        ],
    )


class IssueReconciler:
    """Create issues for findings the tracker has never seen."""

    def __init__(self, tracker: IssueTracker, *, logger: RunLogger, label: str = FINDING_LABEL) -> None:
        self._tracker = tracker
        self._logger = logger
        self._label = label

    def reconcile(self, report: SarifReport) -> list[CreatedIssue]:
        """Process every finding in encounter order.

        Args:
            report: Run-level report after filtering.

        Returns:
            list[CreatedIssue]: Issues created by this call.

        Raises:
            TrackerError: If existing issues cannot be listed.
        """

        findings = list(report.iter_results())
        if not findings:
            self._logger.info("No findings to reconcile with the issue tracker")
            return []

        known = {issue.title: issue.state for issue in self._tracker.list_issues()}
        self._logger.info(f"Found {len(known)} existing issues; processing {len(findings)} findings")
        created: list[CreatedIssue] = []
        for result in findings:
            issue = self._reconcile_one(result, known)
            if issue is not None:
                created.append(issue)
        self._logger.info(f"Created {len(created)} new issue(s)")
        return created

    def _reconcile_one(self, result: SarifResult, known: dict[str, IssueState]) -> CreatedIssue | None:
        digest = finding_fingerprint(result)
        title = issue_title(result.rule_id or UNKNOWN_RULE, digest)
        state = known.get(title)
        if state is IssueState.OPEN:
            self._logger.info(f"Issue '{title}' already exists and is open; skipping")
            return None
        if state is IssueState.CLOSED:
            self._logger.info(f"Issue '{title}' was previously closed; not reopening")
            return None

        draft = IssueDraft(title=title, body=render_body(result, digest), labels=(self._label,))
        try:
            issue = self._tracker.create_issue(draft)
        except TrackerError as exc:
            self._logger.warn(f"Failed to create issue '{title}': {exc}")
            return None
        known[title] = IssueState.OPEN
        self._logger.ok(f"Created issue #{issue.number}: {title}")
        return issue


__all__ = ["FINDING_LABEL", "IssueReconciler", "render_body"]
