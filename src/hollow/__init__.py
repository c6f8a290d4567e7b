"""Hollow package root."""

from hollow.exceptions import FindingRetracted, HollowError, NeverRaise, NeverThrown
from hollow.invariants import never

__all__ = [
    "__version__",
    "FindingRetracted",
    "HollowError",
    "NeverRaise",
    "NeverThrown",
    "never",
]

__version__ = "0.1.0"
