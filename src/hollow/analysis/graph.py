"""Method hierarchy graph: nodes, override edges and per-node facts.

The graph is built once per analysis pass and is read-only afterwards.
:meth:`HierarchyGraph.build` is the only way in; it normalizes whatever
the graph provider hands over so that the override relation is always its
own inverse. Anything it had to drop is recorded as a
:class:`GraphDiagnostic` rather than raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import Iterable, Mapping

from hollow.analysis.timeout_context import check_deadline

logger = logging.getLogger(__name__)


class AccessLevel(IntEnum):
    PRIVATE = 0
    PACKAGE = 1
    PROTECTED = 2
    PUBLIC = 3

    @classmethod
    def parse(cls, value: str) -> "AccessLevel":
        return cls[value.strip().upper()]

    @property
    def label(self) -> str:
        return self.name.lower()


class DiagnosticKind(StrEnum):
    UNRESOLVED_REFERENCE = "unresolved_reference"
    MISSING_INVERSE = "missing_inverse"
    DUPLICATE_NODE = "duplicate_node"
    SELF_OVERRIDE = "self_override"


@dataclass(frozen=True)
class MethodNode:
    node_id: str
    has_body: bool = True
    is_body_empty: bool = False
    is_only_delegating_call: bool = False
    is_constructor: bool = False
    is_synthetic: bool = False
    access: AccessLevel = AccessLevel.PUBLIC

    def __post_init__(self) -> None:
        # An empty body only means something when there is a body.
        if not self.has_body and self.is_body_empty:
            object.__setattr__(self, "is_body_empty", False)

    @property
    def has_empty_body(self) -> bool:
        return self.has_body and self.is_body_empty


@dataclass(frozen=True)
class GraphDiagnostic:
    node_id: str
    kind: DiagnosticKind
    reference: str = ""
    detail: str = ""


@dataclass(frozen=True)
class OverrideEdge:
    """`derived` overrides `base`."""

    derived: str
    base: str


@dataclass(frozen=True, eq=False)
class HierarchyGraph:
    nodes: Mapping[str, MethodNode]
    _supers: Mapping[str, tuple[str, ...]]
    _derived: Mapping[str, tuple[str, ...]]
    diagnostics: tuple[GraphDiagnostic, ...] = ()
    _malformed: frozenset[str] = field(default=frozenset())

    @classmethod
    def build(
        cls,
        nodes: Iterable[MethodNode],
        *,
        overrides: Mapping[str, Iterable[str]] | None = None,
        overridden_by: Mapping[str, Iterable[str]] | None = None,
    ) -> "HierarchyGraph":
        """Normalize provider data into a consistent graph.

        ``overrides`` maps a node to the methods it overrides and
        ``overridden_by`` maps a node to its overriders. An edge is kept only
        when both sides agree (or when the provider supplied just one of the
        two mappings). References to unknown ids are dropped.
        """
        diagnostics: list[GraphDiagnostic] = []
        by_id: dict[str, MethodNode] = {}
        for node in nodes:
            check_deadline()
            if node.node_id in by_id:
                diagnostics.append(
                    GraphDiagnostic(
                        node_id=node.node_id,
                        kind=DiagnosticKind.DUPLICATE_NODE,
                        detail="first definition kept",
                    )
                )
                continue
            by_id[node.node_id] = node

        super_claims = _resolve_claims(
            overrides, by_id, diagnostics, edge_name="overrides"
        )
        derived_claims = _resolve_claims(
            overridden_by, by_id, diagnostics, edge_name="overridden_by"
        )

        edges: set[OverrideEdge] = set()
        from_supers = {
            OverrideEdge(derived=node_id, base=base)
            for node_id, bases in super_claims.items()
            for base in bases
        }
        from_derived = {
            OverrideEdge(derived=derived, base=node_id)
            for node_id, deriveds in derived_claims.items()
            for derived in deriveds
        }
        if overrides is None or overridden_by is None:
            edges = from_supers | from_derived
        else:
            edges = from_supers & from_derived
            for edge in sorted(
                from_supers ^ from_derived,
                key=lambda item: (item.derived, item.base),
            ):
                check_deadline()
                claimed_by = edge.derived if edge in from_supers else edge.base
                reference = edge.base if edge in from_supers else edge.derived
                diagnostics.append(
                    GraphDiagnostic(
                        node_id=claimed_by,
                        kind=DiagnosticKind.MISSING_INVERSE,
                        reference=reference,
                        detail=f"{edge.derived} -> {edge.base} declared on one side only",
                    )
                )

        graph = cls._from_edges(by_id, edges, tuple(diagnostics))
        for diagnostic in graph.diagnostics:
            logger.warning(
                "malformed hierarchy at %s: %s %s",
                diagnostic.node_id,
                diagnostic.kind.value,
                diagnostic.reference or diagnostic.detail,
            )
        return graph

    @classmethod
    def _from_edges(
        cls,
        by_id: Mapping[str, MethodNode],
        edges: Iterable[OverrideEdge],
        diagnostics: tuple[GraphDiagnostic, ...],
    ) -> "HierarchyGraph":
        supers: dict[str, list[str]] = {node_id: [] for node_id in by_id}
        derived: dict[str, list[str]] = {node_id: [] for node_id in by_id}
        for edge in edges:
            supers[edge.derived].append(edge.base)
            derived[edge.base].append(edge.derived)
        return cls(
            nodes=dict(by_id),
            _supers={
                node_id: tuple(sorted(ids))
                for node_id, ids in supers.items()
            },
            _derived={
                node_id: tuple(sorted(ids))
                for node_id, ids in derived.items()
            },
            diagnostics=diagnostics,
            _malformed=frozenset(
                diagnostic.node_id
                for diagnostic in diagnostics
                if diagnostic.kind is not DiagnosticKind.DUPLICATE_NODE
            ),
        )

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, node_id: str) -> MethodNode | None:
        return self.nodes.get(node_id)

    def node_ids(self) -> list[str]:
        return sorted(self.nodes)

    def super_methods(self, node_id: str) -> tuple[str, ...]:
        return self._supers.get(node_id, ())

    def derived_methods(self, node_id: str) -> tuple[str, ...]:
        return self._derived.get(node_id, ())

    def is_malformed(self, node_id: str) -> bool:
        return node_id in self._malformed

    def diagnostics_for(self, node_id: str) -> tuple[GraphDiagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.node_id == node_id)

    def edges(self) -> list[OverrideEdge]:
        return [
            OverrideEdge(derived=node_id, base=base)
            for node_id in self.node_ids()
            for base in self.super_methods(node_id)
        ]

    def without(self, node_ids: Iterable[str]) -> "HierarchyGraph":
        """Return the graph as it looks once ``node_ids`` were removed.

        Edges touching a removed node disappear with it. Diagnostics on
        removed nodes are dropped; the remaining ones are kept as-is.
        """
        removed = set(node_ids)
        kept = {
            node_id: node
            for node_id, node in self.nodes.items()
            if node_id not in removed
        }
        edges = [
            edge
            for edge in self.edges()
            if edge.derived not in removed and edge.base not in removed
        ]
        diagnostics = tuple(d for d in self.diagnostics if d.node_id not in removed)
        return HierarchyGraph._from_edges(kept, edges, diagnostics)


def _resolve_claims(
    claims: Mapping[str, Iterable[str]] | None,
    by_id: Mapping[str, MethodNode],
    diagnostics: list[GraphDiagnostic],
    *,
    edge_name: str,
) -> dict[str, set[str]]:
    resolved: dict[str, set[str]] = {}
    if claims is None:
        return resolved
    for node_id in sorted(claims):
        check_deadline()
        targets = claims[node_id]
        if node_id not in by_id:
            diagnostics.append(
                GraphDiagnostic(
                    node_id=node_id,
                    kind=DiagnosticKind.UNRESOLVED_REFERENCE,
                    detail=f"{edge_name} declared for unknown method",
                )
            )
            continue
        for target in sorted(set(targets)):
            check_deadline()
            if target not in by_id:
                diagnostics.append(
                    GraphDiagnostic(
                        node_id=node_id,
                        kind=DiagnosticKind.UNRESOLVED_REFERENCE,
                        reference=target,
                        detail=f"{edge_name} target is not in the graph",
                    )
                )
                continue
            if target == node_id:
                diagnostics.append(
                    GraphDiagnostic(
                        node_id=node_id,
                        kind=DiagnosticKind.SELF_OVERRIDE,
                        reference=target,
                        detail=f"{edge_name} refers to the method itself",
                    )
                )
                continue
            resolved.setdefault(node_id, set()).add(target)
    return resolved
