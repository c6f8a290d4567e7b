"""Deletion plans for redundant methods.

A plan lists every method that has to go together so that no override is
left without the contract it overrides. Plans are recomputed from the
graph handed in at plan time and never cached: the graph may have changed
since classification.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from hollow.analysis.findings import Finding, FindingCategory
from hollow.analysis.graph import HierarchyGraph
from hollow.analysis.timeout_context import check_deadline
from hollow.config import PlanConfig
from hollow.exceptions import FindingRetracted
from hollow.invariants import never


@dataclass(frozen=True)
class DeletionPlan:
    node_id: str
    category: FindingCategory
    entries: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.entries


class DeletionPlanner:
    """Turns a reportable finding into the list of methods to delete.

    ``plan`` walks the graph under ``check_deadline()`` and so needs an open
    ``analysis_budget_scope``; without one it raises ``NeverThrown``.
    """

    def __init__(self, config: PlanConfig | None = None) -> None:
        self.config = config or PlanConfig()

    def plan(self, finding: Finding, graph: HierarchyGraph) -> DeletionPlan:
        check_deadline()
        if not finding.reportable:
            raise FindingRetracted(finding.node_id)
        node_id = finding.node_id
        if node_id not in graph:
            return DeletionPlan(node_id=node_id, category=finding.category)
        match finding.category:
            case (
                FindingCategory.ONLY_DELEGATES
                | FindingCategory.OVERRIDES_EMPTY
                | FindingCategory.ISOLATED_EMPTY
            ):
                entries = (node_id,)
            case FindingCategory.EMPTY_HIERARCHY:
                entries = self._hierarchy(graph, node_id, include_root=True)
            case FindingCategory.EMPTY_IMPLEMENTATIONS:
                entries = self._hierarchy(graph, node_id, include_root=False)
            case _:
                never("unhandled finding category", category=finding.category)
        return DeletionPlan(node_id=node_id, category=finding.category, entries=entries)

    def _hierarchy(
        self,
        graph: HierarchyGraph,
        root_id: str,
        *,
        include_root: bool,
    ) -> tuple[str, ...]:
        derived_first = self.config.order == "derived_first"
        ordered: list[str] = [] if derived_first else [root_id]
        seen: set[str] = {root_id}
        stack: list[tuple[str, Iterator[str]]] = [(root_id, iter(graph.derived_methods(root_id)))]
        while stack:
            check_deadline()
            node_id, pending = stack[-1]
            derived_id = next((entry for entry in pending if entry not in seen), None)
            if derived_id is None:
                stack.pop()
                if derived_first:
                    ordered.append(node_id)
                continue
            seen.add(derived_id)
            if not derived_first:
                ordered.append(derived_id)
            stack.append((derived_id, iter(graph.derived_methods(derived_id))))
        if not include_root:
            ordered.remove(root_id)
        return tuple(ordered)
