"""Empty-method analysis over method hierarchy graphs."""

from .classifier import EmptinessClassifier
from .findings import Finding, FindingCategory, FindingState
from .graph import (
    AccessLevel,
    DiagnosticKind,
    GraphDiagnostic,
    HierarchyGraph,
    MethodNode,
)
from .pipeline import PassResult, classify_graph, run_pass
from .usage_gate import (
    ExternalOverrideProbe,
    ExternalUsageGate,
    UsageProbeMessage,
    retract,
)

__all__ = [
    "AccessLevel",
    "DiagnosticKind",
    "EmptinessClassifier",
    "ExternalOverrideProbe",
    "ExternalUsageGate",
    "Finding",
    "FindingCategory",
    "FindingState",
    "GraphDiagnostic",
    "HierarchyGraph",
    "MethodNode",
    "PassResult",
    "UsageProbeMessage",
    "classify_graph",
    "retract",
    "run_pass",
]
