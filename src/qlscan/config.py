# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Validated configuration records consumed by the scan pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .discovery.rules import Rule

DEFAULT_LANGUAGE: Final[str] = "javascript"
DEFAULT_PROFILE: Final[str] = "security-and-quality"
DEFAULT_RAM_MB: Final[int] = 4000


class QueryFilterExclude(BaseModel):
    """Rule identifier whose findings are dropped after merge."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)


class QueryFilter(BaseModel):
    """A ``query-filters`` entry of the form ``{exclude: {id: ...}}``."""

    model_config = ConfigDict(frozen=True)

    exclude: QueryFilterExclude

    @classmethod
    def excluding(cls, rule_id: str) -> QueryFilter:
        """Return a filter suppressing ``rule_id``."""

        return cls(exclude=QueryFilterExclude(id=rule_id))

    @property
    def excluded_rule_id(self) -> str:
        """Return the suppressed rule identifier."""

        return self.exclude.id


class SelectionConfig(BaseModel):
    """Ordered include/exclude rules derived from ``paths``/``paths-ignore``."""

    model_config = ConfigDict(frozen=True)

    include_rules: tuple[Rule, ...] = ()
    exclude_rules: tuple[Rule, ...] = ()

    @classmethod
    def from_patterns(cls, paths: Sequence[str] = (), paths_ignore: Sequence[str] = ()) -> SelectionConfig:
        """Build a selection config from raw pattern strings."""

        return cls(
            include_rules=tuple(Rule.parse(entry) for entry in paths),
            exclude_rules=tuple(Rule.parse(entry) for entry in paths_ignore),
        )


class ScanConfig(BaseModel):
    """Configuration document after YAML parsing and validation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    paths: tuple[str, ...] = ()
    paths_ignore: tuple[str, ...] = Field(default=(), alias="paths-ignore")
    query_filters: tuple[QueryFilter, ...] = Field(default=(), alias="query-filters")
    packs: tuple[str, ...] = ()
    languages: tuple[str, ...] | None = None

    @field_validator("paths", "paths_ignore", "packs")
    @classmethod
    def _strip_entries(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(entry.strip() for entry in value if entry.strip())

    @field_validator("paths", "paths_ignore")
    @classmethod
    def _parse_rules(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for entry in value:
            Rule.parse(entry)
        return value

    def selection(self) -> SelectionConfig:
        """Return the file selection rules described by this config."""

        return SelectionConfig.from_patterns(self.paths, self.paths_ignore)

    def describe(self) -> str:
        """Return a compact JSON rendering used for audit logging."""

        return self.model_dump_json(by_alias=True, exclude_none=True)


__all__ = [
    "DEFAULT_LANGUAGE",
    "DEFAULT_PROFILE",
    "DEFAULT_RAM_MB",
    "QueryFilter",
    "QueryFilterExclude",
    "ScanConfig",
    "SelectionConfig",
]
