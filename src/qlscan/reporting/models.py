# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""SARIF document models limited to the fields the pipeline interprets.

Every model allows extra keys so documents round-trip without losing data
the pipeline does not look at.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

_LOSSLESS = ConfigDict(extra="allow", frozen=True, populate_by_name=True)


class SarifMessage(BaseModel):
    """The ``message`` object of a result."""

    model_config = _LOSSLESS

    text: str = ""


class SarifResult(BaseModel):
    """A single finding reported by the analysis engine."""

    model_config = _LOSSLESS

    rule_id: str | None = Field(default=None, alias="ruleId")
    message: SarifMessage = Field(default_factory=SarifMessage)
    locations: list[dict[str, Any]] | None = None

    @property
    def primary_file(self) -> str | None:
        """Return the artifact URI of the first location, when present."""

        physical = self._primary_physical_location()
        artifact = physical.get("artifactLocation")
        uri = artifact.get("uri") if isinstance(artifact, dict) else None
        return uri if isinstance(uri, str) else None

    @property
    def primary_line(self) -> int | None:
        """Return the start line of the first location, when present."""

        physical = self._primary_physical_location()
        region = physical.get("region")
        line = region.get("startLine") if isinstance(region, dict) else None
        return line if isinstance(line, int) and not isinstance(line, bool) else None

    def _primary_physical_location(self) -> dict[str, Any]:
        if not self.locations:
            return {}
        physical = self.locations[0].get("physicalLocation")
        return physical if isinstance(physical, dict) else {}


class SarifRun(BaseModel):
    """One ``runs`` entry; ``results`` may be absent in engine output."""

    model_config = _LOSSLESS

    results: list[SarifResult] | None = None

    @property
    def findings(self) -> list[SarifResult]:
        """Return the run's results, treating an absent list as empty."""

        return list(self.results or [])


class SarifReport(BaseModel):
    """A SARIF document reduced to its ``runs`` array."""

    model_config = _LOSSLESS

    runs: list[SarifRun] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> SarifReport:
        """Return a report with no runs."""

        return cls(runs=[])

    def iter_results(self) -> Iterator[SarifResult]:
        """Yield every result across every run in encounter order."""

        for run in self.runs:
            yield from run.findings

    def to_document(self) -> dict[str, Any]:
        """Return the JSON-ready document, preserving uninterpreted keys."""

        document = self.model_dump(mode="json", by_alias=True, exclude_unset=True)
        document["runs"] = [run.model_dump(mode="json", by_alias=True, exclude_unset=True) for run in self.runs]
        return document


__all__ = ["SarifMessage", "SarifReport", "SarifResult", "SarifRun"]
