"""Deadline and tick-budget carriers for graph walks.

Every loop over graph nodes calls :func:`check_deadline`. A walk therefore
needs both a :class:`Deadline` (wall clock) and a tick clock in scope; the
pass driver and the CLI open them, tests open them from ``conftest.py``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Protocol, TypeVar
import threading
import time

from hollow.invariants import never

_Item = TypeVar("_Item")


class TickClock(Protocol):
    def consume(self, ticks: int = 1) -> None:
        """Consume logical progress units."""


class TickBudgetExhausted(RuntimeError):
    """Raised by logical clocks when available ticks are exhausted."""


class TimeoutExceeded(TimeoutError):
    def __init__(self, *, reason: str, checks: int) -> None:
        super().__init__(f"Analysis timed out ({reason} after {checks} checks).")
        self.reason = reason
        self.checks = checks


@dataclass(frozen=True)
class WallClock:
    """Tick clock that never runs out; only the wall-clock deadline applies."""

    def consume(self, ticks: int = 1) -> None:
        return


@dataclass
class GasMeter:
    """Deterministic tick budget, one tick per visited node.

    Worker threads of one pass share the meter through copied contexts.
    """

    limit: int
    spent: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def __post_init__(self) -> None:
        if int(self.limit) <= 0:
            never("gas meter limit must be positive", limit=self.limit)
        if int(self.spent) < 0:
            never("gas meter cannot start negative", spent=self.spent)
        self.limit = int(self.limit)
        self.spent = int(self.spent)

    @property
    def remaining(self) -> int:
        return max(self.limit - self.spent, 0)

    def consume(self, ticks: int = 1) -> None:
        if int(ticks) <= 0:
            never("gas meter ticks must be positive", ticks=ticks)
        with self._lock:
            self.spent += int(ticks)
            spent = self.spent
        if spent >= self.limit:
            raise TickBudgetExhausted(f"gas exhausted: {spent}/{self.limit}")


@dataclass(frozen=True)
class Deadline:
    deadline_ns: int

    @classmethod
    def from_timeout_ms(cls, milliseconds: int) -> "Deadline":
        millis = int(milliseconds)
        if millis < 0:
            never("invalid timeout milliseconds", milliseconds=milliseconds)
        return cls(deadline_ns=time.monotonic_ns() + millis * 1_000_000)

    def expired(self) -> bool:
        return time.monotonic_ns() >= self.deadline_ns


_deadline_var: ContextVar[Deadline | None] = ContextVar("hollow_deadline", default=None)
_clock_var: ContextVar[TickClock | None] = ContextVar("hollow_tick_clock", default=None)
_checks_var: ContextVar[list[int] | None] = ContextVar("hollow_deadline_checks", default=None)
_checks_lock = threading.Lock()


def get_deadline() -> Deadline:
    deadline = _deadline_var.get()
    if deadline is None:
        never("deadline carrier missing")
    return deadline


def get_tick_clock() -> TickClock:
    clock = _clock_var.get()
    if clock is None:
        never("tick clock missing")
    return clock


@contextmanager
def deadline_scope(deadline: Deadline) -> Iterator[None]:
    if deadline is None:
        never("deadline carrier missing")
    token = _deadline_var.set(deadline)
    checks_token = _checks_var.set([0])
    try:
        yield
    finally:
        _checks_var.reset(checks_token)
        _deadline_var.reset(token)


@contextmanager
def tick_clock_scope(clock: TickClock) -> Iterator[None]:
    token = _clock_var.set(clock)
    try:
        yield
    finally:
        _clock_var.reset(token)


@contextmanager
def analysis_budget_scope(*, timeout_ms: int, gas_limit: int | None) -> Iterator[None]:
    clock: TickClock = GasMeter(limit=gas_limit) if gas_limit else WallClock()
    with deadline_scope(Deadline.from_timeout_ms(timeout_ms)):
        with tick_clock_scope(clock):
            yield


def deadline_checks() -> int:
    counter = _checks_var.get()
    return counter[0] if counter is not None else 0


def check_deadline() -> None:
    deadline = get_deadline()
    clock = get_tick_clock()
    counter = _checks_var.get()
    checks = 0
    if counter is not None:
        with _checks_lock:
            counter[0] += 1
            checks = counter[0]
    try:
        clock.consume(1)
    except TickBudgetExhausted as exc:
        raise TimeoutExceeded(reason="tick budget exhausted", checks=checks) from exc
    if deadline.expired():
        raise TimeoutExceeded(reason="deadline expired", checks=checks)


def deadline_loop_iter(values: Iterable[_Item]) -> Iterator[_Item]:
    for value in values:
        check_deadline()
        yield value
