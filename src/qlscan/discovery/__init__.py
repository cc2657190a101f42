# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Path rules and file selection for the qlscan package.

Only the rule primitives are re-exported here; :mod:`qlscan.config` depends on
them, while :mod:`qlscan.discovery.selection` depends on the config models.
"""

from __future__ import annotations

from .rules import Rule, RuleKind, compile_glob, matches, matches_any

__all__ = ["Rule", "RuleKind", "compile_glob", "matches", "matches_any"]
