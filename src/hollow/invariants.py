"""Invariant markers for hollow analysis."""

from __future__ import annotations

from typing import NoReturn

from hollow.exceptions import NeverThrown


def never(reason: str = "", **env: object) -> NoReturn:
    """Mark a code path as intentionally unreachable.

    The optional env payload is metadata only; it is carried on the raised
    exception for diagnostics.
    """
    raise NeverThrown(reason or "never() marker reached", env=env)
