# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Stable identities for findings, embedded in issue titles."""

from __future__ import annotations

import hashlib
from typing import Final

from ..reporting import SarifResult

FINGERPRINT_LENGTH: Final[int] = 8
UNKNOWN_FILE: Final[str] = "unknown"
UNKNOWN_RULE: Final[str] = "unknown-rule"
TITLE_PREFIX: Final[str] = "CodeQL Finding"


def fingerprint(rule_id: str, file: str, line: int) -> str:
    """Return the short SHA-256 digest identifying ``(rule_id, file, line)``."""

    digest = hashlib.sha256(f"{rule_id}:{file}:{line}".encode())
    return digest.hexdigest()[:FINGERPRINT_LENGTH]


def finding_fingerprint(result: SarifResult) -> str:
    """Return the fingerprint of a SARIF result using its primary location.

    A result without a location hashes as file ``unknown`` at line ``0``.
    """

    return fingerprint(
        result.rule_id or UNKNOWN_RULE,
        result.primary_file or UNKNOWN_FILE,
        result.primary_line or 0,
    )


def issue_title(rule_id: str, digest: str) -> str:
    """Return the canonical issue title for a rule and fingerprint."""

    return f"{TITLE_PREFIX}: {rule_id} [{digest}]"


__all__ = [
    "FINGERPRINT_LENGTH",
    "finding_fingerprint",
    "fingerprint",
    "issue_title",
]
