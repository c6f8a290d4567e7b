from __future__ import annotations

import pytest

from hollow.analysis.findings import FindingCategory
from hollow.analysis.graph import HierarchyGraph
from hollow.analysis.pipeline import classify_graph, run_pass
from hollow.analysis.timeout_context import TimeoutExceeded
from hollow.analysis.usage_gate import ExternalOverrideProbe, ExternalUsageGate, UsageProbeMessage
from hollow.config import PassConfig
from hollow.exceptions import FindingRetracted
from hollow.refactor.deletion_plan import DeletionPlanner
from tests.graph_helpers import hierarchy, method


def _mixed_graph() -> HierarchyGraph:
    return hierarchy(
        [
            method("Base"),
            method("Delegate", body="delegate"),
            method("EmptyBase", body="empty"),
            method("OverEmpty"),
            method("Lonely", body="empty"),
            method("EmptyRoot", body="empty"),
            method("EmptyRoot.D1", body="empty"),
            method("EmptyRoot.D2", body="empty"),
            method("Contract", body="none"),
            method("Contract.Impl", body="empty"),
            method("Ctor", body="empty", constructor=True),
            method("Generated", body="empty", synthetic=True),
            method("Stub", body="empty"),
        ],
        [
            ("Delegate", "Base"),
            ("OverEmpty", "EmptyBase"),
            ("EmptyRoot.D1", "EmptyRoot"),
            ("EmptyRoot.D2", "EmptyRoot"),
            ("Contract.Impl", "Contract"),
        ],
    )


def test_pass_reports_one_finding_per_redundant_node() -> None:
    result = run_pass(_mixed_graph())
    categories = {finding.node_id: finding.category for finding in result.findings}
    assert categories == {
        "Stub": FindingCategory.ISOLATED_EMPTY,
        "Contract": FindingCategory.EMPTY_IMPLEMENTATIONS,
        "Delegate": FindingCategory.ONLY_DELEGATES,
        "EmptyRoot": FindingCategory.EMPTY_HIERARCHY,
        "Lonely": FindingCategory.ISOLATED_EMPTY,
        "OverEmpty": FindingCategory.OVERRIDES_EMPTY,
    }
    assert [finding.node_id for finding in result.findings] == sorted(categories)
    assert result.stats["nodes"] == 13
    assert result.stats["findings"] == 6
    assert result.stats["category_C1"] == 2
    assert result.stats["skipped"] == 0


def test_pass_skips_malformed_nodes_and_surfaces_diagnostics() -> None:
    graph = HierarchyGraph.build(
        [method("M", body="empty"), method("Other", body="empty")],
        overrides={"M": ["Ghost"]},
    )
    result = run_pass(graph)
    assert [finding.node_id for finding in result.findings] == ["Other"]
    assert result.diagnostics[0].node_id == "M"
    assert result.stats["skipped"] == 1


def test_parallel_pass_matches_sequential_pass() -> None:
    graph = _mixed_graph()
    sequential = run_pass(graph, PassConfig(workers=1))
    parallel = run_pass(graph, PassConfig(workers=4))
    assert sequential.findings == parallel.findings
    assert sequential.stats == parallel.stats


def test_pass_honours_tick_budget() -> None:
    with pytest.raises(TimeoutExceeded):
        run_pass(_mixed_graph(), PassConfig(gas_limit=3))


def test_retracted_finding_is_filtered_and_rejected_by_planner() -> None:
    graph = _mixed_graph()
    result = classify_graph(graph, PassConfig())
    gate = ExternalUsageGate(result.findings)
    gate.submit(
        UsageProbeMessage(
            "Lonely",
            ExternalOverrideProbe(has_body=True, is_body_empty=False, is_only_delegating_call=False),
        )
    )
    assert gate.drain().retracted == ("Lonely",)
    lonely = result.finding_for("Lonely")
    assert not lonely.reportable
    assert lonely not in result.reportable()
    assert len(result.reportable()) == 5
    with pytest.raises(FindingRetracted):
        DeletionPlanner().plan(lonely, graph)


def test_plan_of_delegate_and_override_findings_is_singleton() -> None:
    graph = _mixed_graph()
    result = classify_graph(graph, PassConfig())
    planner = DeletionPlanner()
    for finding in result.findings:
        if finding.category in (FindingCategory.ONLY_DELEGATES, FindingCategory.OVERRIDES_EMPTY):
            assert planner.plan(finding, graph).entries == (finding.node_id,)
    root = result.finding_for("EmptyRoot")
    assert set(planner.plan(root, graph)) == {"EmptyRoot", "EmptyRoot.D1", "EmptyRoot.D2"}
    contract = result.finding_for("Contract")
    assert planner.plan(contract, graph).entries == ("Contract.Impl",)
