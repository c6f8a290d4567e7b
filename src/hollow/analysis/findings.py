from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import StrEnum

SHORT_NAME = "EmptyMethod"
DISPLAY_NAME = "Empty method"
GROUP_DISPLAY_NAME = "Declaration redundancy"


class FindingCategory(StrEnum):
    ONLY_DELEGATES = "A"
    OVERRIDES_EMPTY = "B"
    ISOLATED_EMPTY = "C1"
    EMPTY_HIERARCHY = "C2"
    EMPTY_IMPLEMENTATIONS = "C3"

    @property
    def message_code(self) -> str:
        return _MESSAGE_CODES[self]

    @property
    def message(self) -> str:
        return _MESSAGE_TEXTS[self]


_MESSAGE_CODES: dict[FindingCategory, str] = {
    FindingCategory.ONLY_DELEGATES: "empty-method.only-delegates",
    FindingCategory.OVERRIDES_EMPTY: "empty-method.overrides-empty",
    FindingCategory.ISOLATED_EMPTY: "empty-method.empty",
    FindingCategory.EMPTY_HIERARCHY: "empty-method.empty-hierarchy",
    FindingCategory.EMPTY_IMPLEMENTATIONS: "empty-method.all-implementations-empty",
}

_MESSAGE_TEXTS: dict[FindingCategory, str] = {
    FindingCategory.ONLY_DELEGATES: "The method only calls its super",
    FindingCategory.OVERRIDES_EMPTY: "Empty method overrides empty method",
    FindingCategory.ISOLATED_EMPTY: "The method is empty",
    FindingCategory.EMPTY_HIERARCHY: "The method and all its derivables are empty",
    FindingCategory.EMPTY_IMPLEMENTATIONS: "All implementations of this method are empty",
}


class FindingState(StrEnum):
    REPORTABLE = "reportable"
    RETRACTED = "retracted"


@dataclass(eq=False)
class Finding:
    """One redundant method.

    ``reportable`` only ever goes from true to false. :meth:`retract` may be
    called from any thread and any number of times.
    """

    node_id: str
    category: FindingCategory
    _state: FindingState = field(default=FindingState.REPORTABLE, repr=False)
    _retracted_by: str = field(default="", repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def message_code(self) -> str:
        return self.category.message_code

    @property
    def message(self) -> str:
        return self.category.message

    @property
    def state(self) -> FindingState:
        return self._state

    @property
    def reportable(self) -> bool:
        return self._state is FindingState.REPORTABLE

    @property
    def retracted_by(self) -> str:
        return self._retracted_by

    def retract(self, origin: str = "") -> bool:
        """Retract the finding; returns True only for the call that did it."""
        with self._lock:
            if self._state is FindingState.RETRACTED:
                return False
            self._state = FindingState.RETRACTED
            self._retracted_by = origin
            return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Finding):
            return NotImplemented
        return (self.node_id, self.category) == (other.node_id, other.category)

    def __hash__(self) -> int:
        return hash((self.node_id, self.category))
