from hollow.refactor.deletion_plan import DeletionPlan, DeletionPlanner
from hollow.refactor.removal import GraphRemovalExecutor

__all__ = [
    "DeletionPlan",
    "DeletionPlanner",
    "GraphRemovalExecutor",
]
