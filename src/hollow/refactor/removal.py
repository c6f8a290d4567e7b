from __future__ import annotations

import logging

from hollow.analysis.graph import HierarchyGraph
from hollow.contracts import RemovalOutcome, RemovalReport
from hollow.refactor.deletion_plan import DeletionPlan

logger = logging.getLogger(__name__)


class GraphRemovalExecutor:
    """Applies a deletion plan to the in-memory graph only.

    Source edits stay with the front end; this executor yields the graph a
    front end would rebuild after performing them.
    """

    def remove(self, plan: DeletionPlan, graph: HierarchyGraph) -> RemovalReport:
        outcomes: dict[str, RemovalOutcome] = {}
        for node_id in plan.entries:
            if node_id in graph:
                outcomes[node_id] = RemovalOutcome.REMOVED
            else:
                outcomes[node_id] = RemovalOutcome.MISSING
        removed = [
            node_id
            for node_id, outcome in outcomes.items()
            if outcome is RemovalOutcome.REMOVED
        ]
        logger.info("removing %d method(s) planned for %s", len(removed), plan.node_id)
        return RemovalReport(outcomes=outcomes, graph=graph.without(removed))
