"""Exception types for hollow analysis."""

from __future__ import annotations

from typing import Mapping


class NeverRaise(RuntimeError):
    """Sentinel exception that should be statically unreachable.

    Raising this exception signals that an internal invariant was violated:
    the code path was expected to be unreachable for every well-formed input.
    """

    def __init__(self, message: str, *, env: Mapping[str, object] | None = None):
        super().__init__(message)
        self.reason = message
        self.env: dict[str, object] = dict(env or {})


class NeverThrown(NeverRaise):
    """Alias for NeverRaise used by the explicit never() marker."""


class HollowError(Exception):
    """Base class for caller-facing hollow errors."""


class FindingRetracted(HollowError):
    """Raised when a retracted finding is handed to the deletion planner."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"finding for {node_id!r} was retracted")
        self.node_id = node_id
