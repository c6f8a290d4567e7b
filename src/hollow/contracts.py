"""Boundaries to the collaborators hollow does not implement itself.

A front end supplies the graph, a usage search supplies probes for
overrides outside the graph, and a removal executor performs the edits a
deletion plan asks for. Removal needs exclusive access to the planned
nodes: callers must not run a classification pass over the same graph
while a removal is in flight.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Iterable, Mapping, Protocol, runtime_checkable

if TYPE_CHECKING:
    from hollow.analysis.findings import Finding
    from hollow.analysis.graph import HierarchyGraph
    from hollow.analysis.usage_gate import UsageProbeMessage
    from hollow.refactor.deletion_plan import DeletionPlan


class RemovalOutcome(StrEnum):
    REMOVED = "removed"
    MISSING = "missing"


@dataclass(frozen=True)
class RemovalReport:
    outcomes: Mapping[str, RemovalOutcome] = field(default_factory=dict)
    graph: HierarchyGraph | None = None

    @property
    def removed(self) -> tuple[str, ...]:
        return tuple(
            node_id
            for node_id, outcome in self.outcomes.items()
            if outcome is RemovalOutcome.REMOVED
        )


@runtime_checkable
class GraphProvider(Protocol):
    def load(self) -> HierarchyGraph: ...


@runtime_checkable
class UsageSearch(Protocol):
    def probes(self, findings: Iterable[Finding]) -> Iterable[UsageProbeMessage]: ...


@runtime_checkable
class RemovalExecutor(Protocol):
    def remove(self, plan: DeletionPlan, graph: HierarchyGraph) -> RemovalReport: ...
