from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from hollow.analysis.findings import Finding
from hollow.analysis.graph import AccessLevel, HierarchyGraph, MethodNode
from hollow.analysis.timeout_context import check_deadline
from hollow.analysis.usage_gate import ExternalOverrideProbe, UsageProbeMessage
from hollow.schema import (
    HierarchyGraphDTO,
    MethodNodeDTO,
    UsageProbeBatchDTO,
)


def graph_from_payload(payload: HierarchyGraphDTO) -> HierarchyGraph:
    nodes: list[MethodNode] = []
    overrides: dict[str, list[str]] = {}
    overridden_by: dict[str, list[str]] = {}
    declares_supers = declares_derived = False
    seen: set[str] = set()
    for method in payload.methods:
        check_deadline()
        nodes.append(
            MethodNode(
                node_id=method.id,
                has_body=method.has_body,
                is_body_empty=method.is_body_empty,
                is_only_delegating_call=method.only_delegates,
                is_constructor=method.constructor,
                is_synthetic=method.synthetic,
                access=AccessLevel.parse(method.access),
            )
        )
        # Later definitions of an id are diagnosed by build; their edges are dropped.
        if method.id in seen:
            continue
        seen.add(method.id)
        if method.overrides is not None:
            declares_supers = True
            overrides[method.id] = list(method.overrides)
        if method.overridden_by is not None:
            declares_derived = True
            overridden_by[method.id] = list(method.overridden_by)
    # Payloads that only spell out one direction are completed from it.
    return HierarchyGraph.build(
        nodes,
        overrides=overrides if declares_supers else None,
        overridden_by=overridden_by if declares_derived else None,
    )


def graph_to_payload(graph: HierarchyGraph) -> HierarchyGraphDTO:
    methods: list[MethodNodeDTO] = []
    for node_id in graph.node_ids():
        check_deadline()
        node = graph.nodes[node_id]
        methods.append(
            MethodNodeDTO(
                id=node_id,
                has_body=node.has_body,
                is_body_empty=node.is_body_empty,
                only_delegates=node.is_only_delegating_call,
                constructor=node.is_constructor,
                synthetic=node.is_synthetic,
                access=node.access.label,
                overrides=list(graph.super_methods(node_id)),
                overridden_by=list(graph.derived_methods(node_id)),
            )
        )
    return HierarchyGraphDTO(methods=methods)


def probes_from_payload(payload: UsageProbeBatchDTO) -> list[UsageProbeMessage]:
    return [
        UsageProbeMessage(
            finding_key=probe.method,
            probe=ExternalOverrideProbe(
                has_body=probe.has_body,
                is_body_empty=probe.is_body_empty,
                is_only_delegating_call=probe.only_delegates,
                origin=probe.origin,
            ),
        )
        for probe in payload.probes
    ]


def _read_json(path: Path) -> object:
    return json.loads(path.read_text(encoding="utf-8"))


@dataclass(frozen=True)
class JsonGraphProvider:
    path: Path

    def load(self) -> HierarchyGraph:
        payload = HierarchyGraphDTO.model_validate(_read_json(self.path))
        return graph_from_payload(payload)


@dataclass(frozen=True)
class JsonUsageSearch:
    path: Path

    def probes(self, findings: Iterable[Finding]) -> list[UsageProbeMessage]:
        wanted = {finding.node_id for finding in findings}
        payload = UsageProbeBatchDTO.model_validate(_read_json(self.path))
        return [
            message
            for message in probes_from_payload(payload)
            if message.finding_key in wanted
        ]


def write_graph_payload(graph: HierarchyGraph, path: Path) -> None:
    payload = graph_to_payload(graph)
    path.write_text(
        json.dumps(payload.model_dump(), indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
