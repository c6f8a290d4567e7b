from __future__ import annotations

import contextvars
import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from hollow.analysis.classifier import EmptinessClassifier
from hollow.analysis.findings import Finding, FindingCategory
from hollow.analysis.graph import GraphDiagnostic, HierarchyGraph
from hollow.analysis.timeout_context import analysis_budget_scope, deadline_loop_iter
from hollow.config import ClassifierConfig, PassConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PassResult:
    findings: tuple[Finding, ...] = ()
    diagnostics: tuple[GraphDiagnostic, ...] = ()
    stats: dict[str, int] = field(default_factory=dict)

    def reportable(self) -> list[Finding]:
        return [finding for finding in self.findings if finding.reportable]

    def finding_for(self, node_id: str) -> Finding | None:
        for finding in self.findings:
            if finding.node_id == node_id:
                return finding
        return None


def _classify_chunk(
    graph: HierarchyGraph,
    config: ClassifierConfig,
    node_ids: list[str],
) -> list[Finding]:
    classifier = EmptinessClassifier(graph, config)
    findings: list[Finding] = []
    for node_id in deadline_loop_iter(node_ids):
        finding = classifier.classify(node_id)
        if finding is not None:
            findings.append(finding)
    return findings


def _chunks(node_ids: list[str], count: int) -> list[list[str]]:
    return [node_ids[index::count] for index in range(count) if node_ids[index::count]]


def classify_graph(graph: HierarchyGraph, config: PassConfig) -> PassResult:
    """Classify every node; needs a deadline scope to be open."""
    node_ids = graph.node_ids()
    skipped = [
        node_id
        for node_id in node_ids
        if config.classifier.skip_malformed and graph.is_malformed(node_id)
    ]
    for node_id in skipped:
        logger.debug("skipping %s: malformed hierarchy", node_id)

    if config.workers > 1 and len(node_ids) > 1:
        chunks = _chunks(node_ids, config.workers)
        with ThreadPoolExecutor(max_workers=len(chunks)) as pool:
            futures = [
                pool.submit(
                    contextvars.copy_context().run,
                    _classify_chunk,
                    graph,
                    config.classifier,
                    chunk,
                )
                for chunk in chunks
            ]
            collected = [finding for future in futures for finding in future.result()]
    else:
        collected = _classify_chunk(graph, config.classifier, node_ids)

    findings = tuple(sorted(collected, key=lambda f: f.node_id))
    per_category = Counter(finding.category for finding in findings)
    stats = {
        "nodes": len(node_ids),
        "findings": len(findings),
        "skipped": len(skipped),
        "diagnostics": len(graph.diagnostics),
    }
    for category in FindingCategory:
        stats[f"category_{category.value}"] = per_category.get(category, 0)
    logger.info(
        "classified %d method(s): %d finding(s), %d skipped",
        stats["nodes"],
        stats["findings"],
        stats["skipped"],
    )
    return PassResult(findings=findings, diagnostics=graph.diagnostics, stats=stats)


def run_pass(graph: HierarchyGraph, config: PassConfig | None = None) -> PassResult:
    config = config or PassConfig()
    with analysis_budget_scope(timeout_ms=config.timeout_ms, gas_limit=config.gas_limit):
        return classify_graph(graph, config)
