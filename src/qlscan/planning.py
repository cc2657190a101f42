# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Expand languages and profiles into ordered analysis jobs."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Final

from .config import DEFAULT_LANGUAGE, DEFAULT_PROFILE
from .errors import ConfigError
from .logging import RunLogger

LANGUAGE_FAMILIES: Final[Mapping[str, str]] = {
    "javascript": "javascript",
    "typescript": "javascript",
    "python": "python",
    "java": "java",
    "csharp": "csharp",
    "cpp": "cpp",
    "c": "cpp",
    "go": "go",
}
EXTENDED_PROFILE: Final[str] = "security-extended"
DEFAULT_SUITE: Final[str] = "security-and-quality"
_MATRIX_EXPRESSION: Final[re.Pattern[str]] = re.compile(r"\$\{\{\s*matrix\.language\s*\}\}")


@dataclass(frozen=True, slots=True)
class AnalysisJob:
    """One engine run for a (language, pack) pair writing to ``output_slot``."""

    language: str
    pack: str
    output_slot: str


def language_family(language: str) -> str:
    """Return the engine-facing family a language's queries are grouped under."""

    normalized = language.strip().lower()
    return LANGUAGE_FAMILIES.get(normalized, normalized)


def default_pack(language: str) -> str:
    """Return the family-level default pack, also used as the retry fallback."""

    return f"codeql/{language_family(language)}-queries"


def query_pack(language: str, profile: str) -> str:
    """Return the suite-qualified pack for ``language`` under ``profile``.

    Unrecognised profiles silently select the default suite.
    """

    family = language_family(language)
    suite = EXTENDED_PROFILE if profile.strip().lower() == EXTENDED_PROFILE else DEFAULT_SUITE
    return f"codeql/{family}-queries:codeql-suites/{family}-{suite}.qls"


def output_slot(language: str, index: int, total: int) -> str:
    """Return the fragment file name for the ``index``-th of ``total`` jobs."""

    slug = language.strip().lower()
    if total == 1:
        return f"results-{slug}.sarif"
    return f"results-{slug}-pack-{index}.sarif"


def parse_profiles(raw: str | None) -> list[str]:
    """Split a comma-separated profile list, defaulting to ``security-and-quality``."""

    if raw is None or not raw.strip():
        return [DEFAULT_PROFILE]
    return [profile.strip() for profile in raw.split(",") if profile.strip()]


def parse_languages(raw: str | Sequence[str] | None) -> list[str]:
    """Split, lower-case and de-duplicate a language list, defaulting to ``javascript``.

    Raises:
        ConfigError: If the value still contains an unresolved matrix expression.
    """

    if raw is None:
        return [DEFAULT_LANGUAGE]
    text = raw if isinstance(raw, str) else ",".join(raw)
    if _MATRIX_EXPRESSION.search(text):
        raise ConfigError(
            "Matrix expressions must be resolved before running the scan. Use a matrix strategy in your workflow.",
        )
    languages: list[str] = []
    for entry in text.split(","):
        language = entry.strip().lower()
        if language and language not in languages:
            languages.append(language)
    return languages or [DEFAULT_LANGUAGE]


def plan_jobs(
    languages: Sequence[str],
    profiles: Sequence[str],
    explicit_packs: Sequence[str] | None = None,
    *,
    logger: RunLogger | None = None,
) -> dict[str, list[AnalysisJob]]:
    """Return the ordered job list for every language.

    Explicit packs replace profile expansion for every language. Otherwise one
    pack per profile is derived, duplicates collapse in first-seen order, and a
    language left without jobs receives the family default pack.

    Args:
        languages: Languages to analyse.
        profiles: Profile names such as ``security-extended``.
        explicit_packs: Optional configured packs overriding profiles.
        logger: Optional logger receiving the resolved packs.

    Returns:
        dict[str, list[AnalysisJob]]: Jobs keyed by language in input order.
    """

    plan: dict[str, list[AnalysisJob]] = {}
    for language in languages:
        packs = _packs_for(language, profiles, explicit_packs)
        if not packs:
            packs = [default_pack(language)]
        total = len(packs)
        plan[language] = [
            AnalysisJob(language=language, pack=pack, output_slot=output_slot(language, index, total))
            for index, pack in enumerate(packs)
        ]
        if logger is not None:
            logger.info(f"Query packs for {language}: {', '.join(packs)}")
    return plan


def _packs_for(language: str, profiles: Sequence[str], explicit_packs: Sequence[str] | None) -> list[str]:
    if explicit_packs:
        return list(explicit_packs)
    packs: list[str] = []
    for profile in profiles:
        pack = query_pack(language, profile)
        if pack not in packs:
            packs.append(pack)
    return packs


__all__ = [
    "DEFAULT_SUITE",
    "EXTENDED_PROFILE",
    "LANGUAGE_FAMILIES",
    "AnalysisJob",
    "default_pack",
    "language_family",
    "output_slot",
    "parse_languages",
    "parse_profiles",
    "plan_jobs",
    "query_pack",
]
