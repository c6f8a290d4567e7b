from __future__ import annotations

import pytest

from hollow.analysis.classifier import EmptinessClassifier
from hollow.analysis.findings import FindingCategory
from hollow.analysis.graph import AccessLevel
from hollow.config import ClassifierConfig
from tests.graph_helpers import chain, hierarchy, method


def _category(graph, node_id, config=None):
    finding = EmptinessClassifier(graph, config).classify(node_id)
    return None if finding is None else finding.category


def test_delegate_to_bodied_super_with_same_access_is_category_a() -> None:
    graph = hierarchy(
        [method("S"), method("M", body="delegate")],
        [("M", "S")],
    )
    finding = EmptinessClassifier(graph).classify("M")
    assert finding is not None
    assert finding.category is FindingCategory.ONLY_DELEGATES
    assert finding.message_code == "empty-method.only-delegates"
    assert finding.reportable


def test_delegate_that_widens_access_is_kept() -> None:
    graph = hierarchy(
        [method("S", access="protected"), method("M", body="delegate", access="public")],
        [("M", "S")],
    )
    assert _category(graph, "M") is None


def test_delegate_that_narrows_access_is_flagged() -> None:
    graph = hierarchy(
        [method("S", access="public"), method("M", body="delegate", access="protected")],
        [("M", "S")],
    )
    assert _category(graph, "M") is FindingCategory.ONLY_DELEGATES


def test_delegate_without_bodied_ancestor_is_flagged() -> None:
    graph = hierarchy(
        [method("I", body="none"), method("M", body="delegate")],
        [("M", "I")],
    )
    assert _category(graph, "M") is FindingCategory.ONLY_DELEGATES


def test_delegate_base_search_skips_bodiless_ancestors() -> None:
    graph = hierarchy(
        [
            method("Base", access="protected"),
            method("Abstract", body="none", access="public"),
            method("M", body="delegate", access="public"),
        ],
        [("M", "Abstract"), ("Abstract", "Base")],
    )
    classifier = EmptinessClassifier(graph)
    assert [node.node_id for node in classifier.bases_with_body("M")] == ["Base"]
    assert classifier.classify("M") is None


def test_delegate_with_several_bases_uses_narrowest_access() -> None:
    nodes = [
        method("Left", access="protected"),
        method("Right", access="public"),
        method("M", body="delegate", access="public"),
    ]
    graph = hierarchy(nodes, [("M", "Left"), ("M", "Right")])
    classifier = EmptinessClassifier(graph)
    assert classifier.base_access("M") is AccessLevel.PROTECTED
    assert classifier.classify("M") is None
    widest = ClassifierConfig(access_policy="widest")
    assert _category(graph, "M", widest) is FindingCategory.ONLY_DELEGATES


def test_override_of_empty_implementation_is_category_b() -> None:
    graph = hierarchy(
        [method("S", body="empty"), method("M")],
        [("M", "S")],
    )
    finding = EmptinessClassifier(graph).classify("M")
    assert finding is not None
    assert finding.category is FindingCategory.OVERRIDES_EMPTY
    assert _category(graph, "S") is None


def test_bodiless_override_of_empty_implementation_is_not_category_b() -> None:
    graph = hierarchy(
        [method("S", body="empty"), method("M", body="none")],
        [("M", "S")],
    )
    # S and M form an all-empty hierarchy, so only S is reported.
    assert _category(graph, "S") is FindingCategory.EMPTY_HIERARCHY
    assert _category(graph, "M") is None


def test_isolated_empty_method_is_category_c1() -> None:
    graph = hierarchy([method("M", body="empty")])
    assert _category(graph, "M") is FindingCategory.ISOLATED_EMPTY


def test_empty_method_with_empty_overriders_is_category_c2() -> None:
    graph = hierarchy(
        [method("M", body="empty"), method("D1", body="empty"), method("D2", body="empty")],
        [("D1", "M"), ("D2", "M")],
    )
    assert _category(graph, "M") is FindingCategory.EMPTY_HIERARCHY
    assert _category(graph, "D1") is None
    assert _category(graph, "D2") is None


def test_empty_leaf_override_of_non_empty_method_is_not_flagged() -> None:
    graph = hierarchy(
        [method("S"), method("M", body="empty")],
        [("M", "S")],
    )
    assert _category(graph, "M") is None


def test_contract_with_only_empty_implementations_is_category_c3() -> None:
    graph = hierarchy(
        [method("I", body="none"), method("D1", body="empty"), method("D2", body="none")],
        [("D1", "I"), ("D2", "I")],
    )
    assert _category(graph, "I") is FindingCategory.EMPTY_IMPLEMENTATIONS


def test_contract_with_one_real_implementation_is_not_flagged() -> None:
    graph = hierarchy(
        [method("M", body="none"), method("D1", body="empty"), method("D2")],
        [("D1", "M"), ("D2", "M")],
    )
    classifier = EmptinessClassifier(graph)
    assert classifier.classify("M") is None
    assert classifier.classify("D1") is None
    assert classifier.classify("D2") is None


def test_bodiless_method_without_overriders_is_not_flagged() -> None:
    graph = hierarchy([method("I", body="none")])
    assert _category(graph, "I") is None


def test_empty_subtree_is_checked_transitively() -> None:
    graph = hierarchy(
        [
            method("Root", body="empty"),
            method("Mid", body="none"),
            method("Leaf", body="code"),
        ],
        [("Mid", "Root"), ("Leaf", "Mid")],
    )
    classifier = EmptinessClassifier(graph)
    assert not classifier.all_implementations_empty("Root")
    assert classifier.classify("Root") is None


@pytest.mark.parametrize(
    "node",
    [
        method("M", body="empty", constructor=True),
        method("M", body="empty", synthetic=True),
        method("M", body="delegate", constructor=True),
    ],
)
def test_constructors_and_synthetic_methods_are_never_flagged(node) -> None:
    graph = hierarchy([node])
    assert _category(graph, "M") is None


def test_flagged_super_suppresses_overrider() -> None:
    graph = hierarchy(
        [method("Base"), method("S", body="delegate"), method("M", body="delegate")],
        [("S", "Base"), ("M", "S")],
    )
    classifier = EmptinessClassifier(graph)
    assert classifier.classify("S").category is FindingCategory.ONLY_DELEGATES
    assert classifier.classify("M") is None


def test_reported_nodes_never_have_reported_supers() -> None:
    graph = hierarchy(
        [
            method("A", body="empty"),
            method("B", body="empty"),
            method("C", body="delegate"),
            method("D"),
            method("E", body="delegate"),
            method("I", body="none"),
            method("J", body="empty"),
        ],
        [("B", "A"), ("C", "B"), ("E", "D"), ("J", "I")],
    )
    classifier = EmptinessClassifier(graph)
    for node_id in graph.node_ids():
        if classifier.classify(node_id) is None:
            continue
        for super_id in graph.super_methods(node_id):
            assert classifier.classify(super_id) is None


def test_classification_is_idempotent() -> None:
    graph = hierarchy(
        [method("M", body="empty"), method("D", body="empty")],
        [("D", "M")],
    )
    first = EmptinessClassifier(graph).classify("M")
    second = EmptinessClassifier(graph).classify("M")
    assert first == second
    assert EmptinessClassifier(graph).classify("M") == EmptinessClassifier(graph).classify("M")


def test_cyclic_override_chain_is_never_flagged() -> None:
    graph = hierarchy(
        [method("A", body="empty"), method("B", body="empty")],
        [("A", "B"), ("B", "A")],
    )
    classifier = EmptinessClassifier(graph)
    assert classifier.classify("A") is None
    assert classifier.classify("B") is None
    assert not classifier.all_implementations_empty("A")


def test_overrider_of_cyclic_chain_is_not_flagged() -> None:
    graph = hierarchy(
        [method("A"), method("B"), method("M", body="delegate")],
        [("A", "B"), ("B", "A"), ("M", "A")],
    )
    assert _category(graph, "M") is None


def test_diamond_is_not_a_cycle() -> None:
    graph = hierarchy(
        [
            method("Top", body="empty"),
            method("Left", body="none"),
            method("Right", body="none"),
            method("Bottom", body="empty"),
        ],
        [("Left", "Top"), ("Right", "Top"), ("Bottom", "Left"), ("Bottom", "Right")],
    )
    classifier = EmptinessClassifier(graph)
    assert classifier.all_implementations_empty("Top")
    assert classifier.classify("Top").category is FindingCategory.EMPTY_HIERARCHY
    assert classifier.classify("Bottom") is None


def test_unknown_node_is_not_flagged() -> None:
    graph = hierarchy([method("M", body="empty")])
    assert EmptinessClassifier(graph).classify("missing") is None


def test_strict_body_gate_skips_methods_with_real_code() -> None:
    graph = hierarchy(
        [method("S", body="empty"), method("M")],
        [("M", "S")],
    )
    strict = ClassifierConfig(require_empty_body=True)
    assert _category(graph, "M", strict) is None
    assert _category(graph, "M") is FindingCategory.OVERRIDES_EMPTY


def test_long_override_chain_is_classified_without_recursion() -> None:
    graph = chain(3_000)
    # Only the root and every other empty override below it are reported.
    assert _category(graph, "m02999") is None
    assert _category(graph, "m02998") is FindingCategory.OVERRIDES_EMPTY
    assert _category(graph, "m00000") is FindingCategory.EMPTY_HIERARCHY
    classifier = EmptinessClassifier(graph)
    assert classifier.all_implementations_empty("m00000")
    assert not classifier.is_flagged("m00001")


def test_long_chain_ending_in_real_code_is_not_empty() -> None:
    graph = hierarchy(
        [*chain(2_500).nodes.values(), method("impl")],
        [(f"m{index + 1:05d}", f"m{index:05d}") for index in range(2_499)] + [("impl", "m02499")],
    )
    assert not EmptinessClassifier(graph).all_implementations_empty("m00000")
    assert _category(graph, "m00000") is None
