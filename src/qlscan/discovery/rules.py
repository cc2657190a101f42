# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Path rules evaluated against repository-relative POSIX paths."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Final

GLOBSTAR: Final[str] = "**"
WILDCARD_CHARACTERS: Final[frozenset[str]] = frozenset("*?[")
_PATH_SEPARATOR: Final[str] = "/"
_CURRENT_DIRECTORY_PREFIX: Final[str] = "./"


class RuleKind(str, Enum):
    """How a rule pattern is interpreted."""

    GLOB = "glob"
    DIRECTORY_PREFIX = "directory-prefix"


@dataclass(frozen=True, slots=True)
class Rule:
    """A single include or exclude rule."""

    pattern: str
    kind: RuleKind

    @classmethod
    def parse(cls, raw: str) -> Rule:
        """Build a rule from a raw configuration entry.

        Entries containing a wildcard become globs; anything else matches the
        literal path or any path nested beneath it.

        Args:
            raw: Configuration entry such as ``src`` or ``**/*.test.js``.

        Returns:
            Rule: Normalised rule.

        Raises:
            ValueError: If ``raw`` is empty once normalised or is not a valid glob.
        """

        pattern = normalize_pattern(raw)
        if not pattern:
            raise ValueError(f"empty path rule: {raw!r}")
        kind = RuleKind.GLOB if any(char in WILDCARD_CHARACTERS for char in pattern) else RuleKind.DIRECTORY_PREFIX
        if kind is RuleKind.GLOB:
            try:
                compile_glob(pattern)
            except re.error as exc:
                raise ValueError(f"invalid glob rule {raw!r}: {exc}") from exc
        return cls(pattern=pattern, kind=kind)

    def as_descendant_glob(self) -> Rule:
        """Return the ``pattern/**`` glob implied by a directory-prefix rule."""

        if self.kind is RuleKind.GLOB:
            return self
        return Rule(pattern=f"{self.pattern}{_PATH_SEPARATOR}{GLOBSTAR}", kind=RuleKind.GLOB)


def normalize_pattern(raw: str) -> str:
    """Strip whitespace, backslashes, ``./`` prefixes and trailing separators."""

    cleaned = raw.strip().replace("\\", _PATH_SEPARATOR)
    while cleaned.startswith(_CURRENT_DIRECTORY_PREFIX):
        cleaned = cleaned[len(_CURRENT_DIRECTORY_PREFIX) :]
    return cleaned.rstrip(_PATH_SEPARATOR)


def matches(relative_path: str, rule: Rule) -> bool:
    """Return whether ``relative_path`` satisfies ``rule``.

    Matching is anchored at the start of the path and case-sensitive; a
    directory-prefix rule ``src`` never matches ``src2/foo``.

    Args:
        relative_path: ``/``-separated path relative to the scanned root.
        rule: Rule to evaluate.

    Returns:
        bool: ``True`` when the rule matches.
    """

    if rule.kind is RuleKind.DIRECTORY_PREFIX:
        return relative_path == rule.pattern or relative_path.startswith(f"{rule.pattern}{_PATH_SEPARATOR}")
    return compile_glob(rule.pattern).fullmatch(relative_path) is not None


def matches_any(relative_path: str, rules: Iterable[Rule]) -> bool:
    """Return whether any of ``rules`` matches ``relative_path``."""

    return any(matches(relative_path, rule) for rule in rules)


@lru_cache(maxsize=512)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a segment-aware glob into an anchored regular expression.

    ``*``, ``?`` and ``[...]`` never cross a ``/``; a ``**`` segment spans zero
    or more whole segments.

    Args:
        pattern: Normalised glob pattern.

    Returns:
        re.Pattern[str]: Compiled expression intended for ``fullmatch``.
    """

    segments = _collapse_globstars(pattern.split(_PATH_SEPARATOR))
    pieces: list[str] = []
    for index, segment in enumerate(segments):
        is_last = index == len(segments) - 1
        if segment == GLOBSTAR:
            if index == 0:
                pieces.append(".*" if is_last else "(?:[^/]+/)*")
            else:
                pieces.append("(?:/[^/]+)*")
            continue
        if index > 0 and not (index == 1 and segments[0] == GLOBSTAR):
            pieces.append(_PATH_SEPARATOR)
        pieces.append(_translate_segment(segment))
    return re.compile("".join(pieces))


def _collapse_globstars(segments: list[str]) -> list[str]:
    collapsed: list[str] = []
    for segment in segments:
        if segment == GLOBSTAR and collapsed and collapsed[-1] == GLOBSTAR:
            continue
        collapsed.append(segment)
    return collapsed


def _translate_segment(segment: str) -> str:
    """Translate one glob segment into a regex fragment confined to the segment."""

    if segment == "*":
        return "[^/]+"
    out: list[str] = []
    index = 0
    length = len(segment)
    while index < length:
        char = segment[index]
        if char == "*":
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "[":
            negated = segment[index + 1 : index + 2] in ("!", "^")
            body_start = index + 2 if negated else index + 1
            closing = segment.find("]", body_start)
            # An unterminated or empty class is a literal "[".
            if closing <= body_start:
                out.append(re.escape(char))
            else:
                body = segment[body_start:closing].replace("\\", "\\\\")
                out.append(f"[{'^' if negated else ''}{body}]")
                index = closing
        else:
            out.append(re.escape(char))
        index += 1
    return "".join(out)


__all__ = [
    "GLOBSTAR",
    "Rule",
    "RuleKind",
    "compile_glob",
    "matches",
    "matches_any",
    "normalize_pattern",
]
