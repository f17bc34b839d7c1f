"""Qualified path resolution for application commands."""

from __future__ import annotations

from typing import Iterable

BASE_PATH = "BASE"


def resolve_qualified_path(walked: Iterable[str]) -> str:
    """Return the handler path for a walked subcommand group/subcommand chain.

    ``("config", "set")`` becomes ``"config set"``; an empty walk resolves to
    the ``BASE`` sentinel used for commands without subcommands.
    """

    qualified = " ".join(name.strip() for name in walked if name and name.strip())
    return qualified or BASE_PATH


def normalise_command_name(name: str) -> str:
    return name.strip().lower()
