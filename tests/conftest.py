from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from hollow.analysis.timeout_context import analysis_budget_scope


@pytest.fixture(autouse=True)
def _deadline_scope_fixture():
    with analysis_budget_scope(timeout_ms=120_000, gas_limit=10_000_000):
        yield
