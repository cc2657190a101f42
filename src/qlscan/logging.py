# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing logging helpers with optional colour and emoji support."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.rule import Rule
from rich.text import Text


@runtime_checkable
class RunLogger(Protocol):
    """Logging surface handed to every pipeline component."""

    def info(self, message: str) -> None:
        """Emit an informational message."""

    def ok(self, message: str) -> None:
        """Emit a success message."""

    def warn(self, message: str) -> None:
        """Emit a warning message."""

    def fail(self, message: str) -> None:
        """Emit an error message."""

    def debug(self, message: str) -> None:
        """Emit a diagnostic message when debugging is enabled."""


def detect_tty() -> bool:
    """Return ``True`` when stdout is attached to a terminal."""

    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


@lru_cache(maxsize=8)
def _console(color: bool, use_emoji: bool, tty: bool) -> Console:
    # Stream is resolved per write, so redirected stdout is honoured.
    return Console(
        color_system="auto" if color and tty else None,
        force_terminal=tty,
        no_color=not (color and tty),
        emoji=use_emoji,
        soft_wrap=True,
        highlight=False,
    )


def get_console(*, color: bool, use_emoji: bool) -> Console:
    """Return the shared console for the current colour, emoji and TTY state."""

    return _console(color, use_emoji, detect_tty())


def emoji(symbol: str, enable: bool) -> str:
    """Return *symbol* when emoji output is enabled, otherwise blank."""

    return symbol if enable else ""


def _print_line(
    msg: str,
    *,
    style: str | None,
    use_emoji: bool,
    use_color: bool | None = None,
) -> None:
    """Render ``msg`` to the console using shared styling helpers.

    Args:
        msg: Message text to print to the console.
        style: Rich style name to apply when colour output is active.
        use_emoji: Flag indicating whether emoji output is desired.
        use_color: Optional explicit colour flag overriding TTY detection.
    """

    color_enabled = detect_tty() if use_color is None else use_color
    console = get_console(color=color_enabled, use_emoji=use_emoji)
    text = Text(msg)
    if style and color_enabled:
        text.stylize(style)
    console.print(text)


def section(title: str, *, use_color: bool) -> None:
    """Render a section header to delineate console output blocks."""

    console = get_console(color=use_color, use_emoji=True)
    if use_color:
        console.print()
        console.print(Rule(title))
    else:
        console.print(f"\n--- {title} ---")


def info(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an informational message."""

    prefix = emoji("ℹ️ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="cyan", use_emoji=use_emoji, use_color=use_color)


def ok(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a success message."""

    prefix = emoji("✅ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="green", use_emoji=use_emoji, use_color=use_color)


def warn(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a warning message."""

    prefix = emoji("⚠️ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="yellow", use_emoji=use_emoji, use_color=use_color)


def fail(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an error message."""

    prefix = emoji("❌ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="red", use_emoji=use_emoji, use_color=use_color)


@dataclass(slots=True)
class ConsoleLogger:
    """Adapter around the console helpers honouring emoji, colour and debug settings."""

    use_emoji: bool = True
    use_color: bool | None = None
    debug_enabled: bool = False

    def info(self, message: str) -> None:
        """Log an informational message.

        Args:
            message: Text describing progress.
        """

        info(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def ok(self, message: str) -> None:
        """Log a success message.

        Args:
            message: Text describing the successful state.
        """

        ok(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def warn(self, message: str) -> None:
        """Log a warning message.

        Args:
            message: Text describing the recoverable condition.
        """

        warn(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def fail(self, message: str) -> None:
        """Log a failure message.

        Args:
            message: Text describing the failure state.
        """

        fail(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def debug(self, message: str) -> None:
        """Log ``message`` prefixed with ``[debug]`` when debugging is enabled.

        Args:
            message: Diagnostic payload.
        """

        if self.debug_enabled:
            _print_line(f"[debug] {message}", style="dim", use_emoji=False, use_color=self.use_color)

    def section(self, title: str) -> None:
        """Render a section header.

        Args:
            title: Section title displayed to the user.
        """

        section(title, use_color=detect_tty() if self.use_color is None else self.use_color)


__all__ = [
    "ConsoleLogger",
    "RunLogger",
    "detect_tty",
    "emoji",
    "fail",
    "get_console",
    "info",
    "ok",
    "section",
    "warn",
]
