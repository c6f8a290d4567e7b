"""Emptiness classification of methods in a hierarchy graph.

A method is reported when removing it changes nothing observable:

- A: it only delegates to the method it overrides and does not widen access.
- B: it overrides a method whose body is empty.
- C1/C2/C3: it and every overrider below it are empty (or bodiless).

Only the topmost redundant method of an override chain is reported: a
method whose super is itself reported is left alone. Walks keep an
explicit stack plus the set of nodes on the current path, and hitting that
set again is treated as "not empty" so that a malformed cyclic graph never
produces a finding.
"""

from __future__ import annotations

from dataclasses import dataclass

from hollow.analysis.findings import Finding, FindingCategory
from hollow.analysis.graph import AccessLevel, HierarchyGraph, MethodNode
from hollow.analysis.timeout_context import check_deadline
from hollow.config import ClassifierConfig


@dataclass(frozen=True)
class _Outcome:
    category: FindingCategory | None
    # The super chain of this node runs into a cycle.
    cyclic: bool = False


_CLEAN = _Outcome(category=None)
_CYCLIC = _Outcome(category=None, cyclic=True)


@dataclass
class _Frame:
    node_id: str
    # Supers for the classification walk, overriders for the emptiness walk.
    neighbours: tuple[str, ...]
    index: int = 0
    super_flagged: bool = False


class EmptinessClassifier:
    """Classifies nodes of one graph snapshot.

    Every walk calls ``check_deadline()``, so callers must hold an
    ``analysis_budget_scope`` (``run_pass`` and the CLI open one). Outside
    of it the first call raises ``NeverThrown("deadline carrier missing")``.

    Results are memoized per instance, so one instance serves one pass.
    Instances are not meant to be shared between threads.
    """

    def __init__(
        self,
        graph: HierarchyGraph,
        config: ClassifierConfig | None = None,
    ) -> None:
        self.graph = graph
        self.config = config or ClassifierConfig()
        self._outcomes: dict[str, _Outcome] = {}
        self._all_empty: dict[str, bool] = {}

    def classify(self, node_id: str) -> Finding | None:
        outcome = self._classify(node_id)
        if outcome.category is None:
            return None
        return Finding(node_id=node_id, category=outcome.category)

    def is_flagged(self, node_id: str) -> bool:
        return self._classify(node_id).category is not None

    def _classify(self, node_id: str) -> _Outcome:
        stack: list[_Frame] = []
        on_path: set[str] = set()
        outcome = self._enter(node_id, stack, on_path)
        while stack:
            check_deadline()
            frame = stack[-1]
            if outcome is not None:
                # Outcome of the super the frame descended into last.
                if outcome.cyclic:
                    outcome = self._leave(stack, on_path, _CYCLIC)
                    continue
                frame.super_flagged = frame.super_flagged or outcome.category is not None
                outcome = None
            if frame.index < len(frame.neighbours):
                super_id = frame.neighbours[frame.index]
                frame.index += 1
                if super_id in on_path:
                    outcome = self._leave(stack, on_path, _CYCLIC)
                else:
                    outcome = self._enter(super_id, stack, on_path)
                continue
            if frame.super_flagged:
                outcome = self._leave(stack, on_path, _CLEAN)
            else:
                node = self.graph.nodes[frame.node_id]
                outcome = self._leave(stack, on_path, _Outcome(category=self._category(node)))
        return outcome

    def _enter(self, node_id: str, stack: list[_Frame], on_path: set[str]) -> _Outcome | None:
        """Return a settled outcome, or push a frame and return None."""
        check_deadline()
        cached = self._outcomes.get(node_id)
        if cached is not None:
            return cached
        node = self.graph.node(node_id)
        if node is None or self._excluded(node):
            self._outcomes[node_id] = _CLEAN
            return _CLEAN
        stack.append(_Frame(node_id=node_id, neighbours=self.graph.super_methods(node_id)))
        on_path.add(node_id)
        return None

    def _leave(self, stack: list[_Frame], on_path: set[str], outcome: _Outcome) -> _Outcome:
        frame = stack.pop()
        on_path.discard(frame.node_id)
        self._outcomes[frame.node_id] = outcome
        return outcome

    def _excluded(self, node: MethodNode) -> bool:
        if node.is_constructor:
            return True
        if node.is_synthetic:
            return True
        if self.config.skip_malformed and self.graph.is_malformed(node.node_id):
            return True
        if self.config.require_empty_body and node.has_body:
            return not (node.is_body_empty or node.is_only_delegating_call)
        return False

    def _category(self, node: MethodNode) -> FindingCategory | None:
        if node.is_only_delegating_call:
            base_access = self.base_access(node.node_id)
            if base_access is None or node.access <= base_access:
                return FindingCategory.ONLY_DELEGATES
            return None
        if node.has_body and self.has_empty_super_implementation(node.node_id):
            return FindingCategory.OVERRIDES_EMPTY
        if not self.all_implementations_empty(node.node_id):
            return None
        derived = self.graph.derived_methods(node.node_id)
        supers = self.graph.super_methods(node.node_id)
        if node.has_body:
            if derived:
                return FindingCategory.EMPTY_HIERARCHY
            if not supers:
                return FindingCategory.ISOLATED_EMPTY
            return None
        if derived:
            return FindingCategory.EMPTY_IMPLEMENTATIONS
        return None

    def base_access(self, node_id: str) -> AccessLevel | None:
        """Access level the nearest bodied ancestors grant, or None.

        Each super branch stops at its first method with a body. With several
        such bases (multiple interfaces) the configured policy picks the
        narrowest or widest level among them.
        """
        bases = self.bases_with_body(node_id)
        if not bases:
            return None
        levels = [node.access for node in bases]
        if self.config.access_policy == "widest":
            return max(levels)
        return min(levels)

    def bases_with_body(self, node_id: str) -> list[MethodNode]:
        bases: list[MethodNode] = []
        seen: set[str] = {node_id}
        frontier = list(self.graph.super_methods(node_id))
        while frontier:
            check_deadline()
            current_id = frontier.pop(0)
            if current_id in seen:
                continue
            seen.add(current_id)
            current = self.graph.node(current_id)
            if current is None:
                continue
            if current.has_body:
                bases.append(current)
                continue
            frontier.extend(self.graph.super_methods(current_id))
        return bases

    def has_empty_super_implementation(self, node_id: str) -> bool:
        for super_id in self.graph.super_methods(node_id):
            check_deadline()
            super_node = self.graph.node(super_id)
            if super_node is not None and super_node.has_empty_body:
                return True
        return False

    def all_implementations_empty(self, node_id: str) -> bool:
        stack: list[_Frame] = []
        on_path: set[str] = set()
        empty = self._enter_subtree(node_id, stack, on_path)
        while stack:
            check_deadline()
            frame = stack[-1]
            if empty is False:
                empty = self._leave_subtree(stack, on_path, False)
                continue
            if frame.index < len(frame.neighbours):
                derived_id = frame.neighbours[frame.index]
                frame.index += 1
                if derived_id in on_path:
                    empty = False
                else:
                    empty = self._enter_subtree(derived_id, stack, on_path)
                continue
            empty = self._leave_subtree(stack, on_path, True)
        return bool(empty)

    def _enter_subtree(self, node_id: str, stack: list[_Frame], on_path: set[str]) -> bool | None:
        check_deadline()
        cached = self._all_empty.get(node_id)
        if cached is not None:
            return cached
        node = self.graph.node(node_id)
        if node is None:
            return False
        if node.has_body and not node.is_body_empty:
            self._all_empty[node_id] = False
            return False
        stack.append(_Frame(node_id=node_id, neighbours=self.graph.derived_methods(node_id)))
        on_path.add(node_id)
        return None

    def _leave_subtree(self, stack: list[_Frame], on_path: set[str], empty: bool) -> bool:
        frame = stack.pop()
        on_path.discard(frame.node_id)
        self._all_empty[frame.node_id] = empty
        return empty
