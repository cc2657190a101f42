# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Typer helpers producing sorted option listings in help output."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Final, TypeVar

import typer
from click.core import Context, Parameter
from click.formatting import HelpFormatter
from typer.core import TyperCommand, TyperGroup

ARGUMENT_PARAM_TYPE: Final[str] = "argument"

CommandCallback = TypeVar("CommandCallback", bound=Callable[..., Any])


class SortedTyperCommand(TyperCommand):
    """Typer command that renders options alphabetically within help output."""

    def format_options(self, ctx: Context, formatter: HelpFormatter) -> None:
        """Render positional arguments, then options sorted by long name.

        Args:
            ctx: Click context describing the invocation.
            formatter: Click help formatter used to emit definition lists.
        """

        arguments: list[tuple[str, str]] = []
        options: list[tuple[tuple[str, int], tuple[str, str]]] = []
        for index, param in enumerate(self.get_params(ctx)):
            record = param.get_help_record(ctx)
            if record is None:
                continue
            if getattr(param, "param_type_name", "") == ARGUMENT_PARAM_TYPE:
                arguments.append(record)
                continue
            options.append(((_primary_option_name(param), index), record))

        if arguments:
            with formatter.section("Arguments"):
                formatter.write_dl(arguments)
        if options:
            with formatter.section("Options"):
                formatter.write_dl([record for _, record in sorted(options, key=lambda item: item[0])])


class SortedTyperGroup(TyperGroup):
    """Typer group whose commands default to :class:`SortedTyperCommand`."""

    command_class = SortedTyperCommand


class SortedTyper(typer.Typer):
    """Typer application emitting sorted option listings by default."""

    def __init__(self, *args: Any, cls: type[TyperGroup] | None = None, **kwargs: Any) -> None:
        super().__init__(*args, cls=cls or SortedTyperGroup, **kwargs)

    def command(
        self,
        name: str | None = None,
        *,
        cls: type[TyperCommand] | None = None,
        **kwargs: Any,
    ) -> Callable[[CommandCallback], CommandCallback]:
        """Return a decorator registering a command with sorted help output."""

        return super().command(name, cls=cls or SortedTyperCommand, **kwargs)


def create_typer(*, cls: type[TyperGroup] | None = None, **kwargs: Any) -> SortedTyper:
    """Return a :class:`SortedTyper` configured with ``kwargs``."""

    return SortedTyper(cls=cls, **kwargs)


def _primary_option_name(param: Parameter) -> str:
    names: Iterable[str] = tuple(getattr(param, "opts", ())) + tuple(getattr(param, "secondary_opts", ()))
    long_names = [name for name in names if name.startswith("--")]
    candidate = long_names[0] if long_names else (next(iter(names), "") or param.name or "")
    return candidate.lstrip("-").lower()


__all__ = ["SortedTyper", "SortedTyperCommand", "SortedTyperGroup", "create_typer"]
