from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from pydantic import ValidationError

from hollow.analysis.findings import Finding
from hollow.analysis.graph import HierarchyGraph
from hollow.analysis.pipeline import PassResult, classify_graph
from hollow.analysis.report import check_payload, plan_payload, render_check_report
from hollow.analysis.timeout_context import TimeoutExceeded, analysis_budget_scope
from hollow.analysis.usage_gate import ExternalUsageGate
from hollow.config import (
    PassConfig,
    PlanConfig,
    classify_defaults,
    merge_payload,
    pass_config,
    pass_defaults,
    plan_config,
    plan_defaults,
)
from hollow.exceptions import FindingRetracted
from hollow.ingest.json_payload import (
    JsonGraphProvider,
    JsonUsageSearch,
    write_graph_payload,
)
from hollow.refactor.deletion_plan import DeletionPlanner
from hollow.refactor.removal import GraphRemovalExecutor

app = typer.Typer(add_completion=False, help="Find and plan removal of empty methods.")
logger = logging.getLogger(__name__)

_EXIT_FINDINGS = 1
_EXIT_INVALID_INPUT = 2


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_pass_config(config: Optional[Path], workers: Optional[int]) -> PassConfig:
    section = merge_payload({"workers": workers}, pass_defaults(config_path=config))
    return pass_config(section, classify_defaults(config_path=config))


def _load_plan_config(config: Optional[Path]) -> PlanConfig:
    return plan_config(plan_defaults(config_path=config))


@contextmanager
def _input_errors(path: Path) -> Iterator[None]:
    try:
        yield
    except FileNotFoundError as exc:
        typer.echo(f"error: {path}: file not found", err=True)
        raise typer.Exit(code=_EXIT_INVALID_INPUT) from exc
    except json.JSONDecodeError as exc:
        typer.echo(f"error: {path}: invalid JSON ({exc.msg})", err=True)
        raise typer.Exit(code=_EXIT_INVALID_INPUT) from exc
    except ValidationError as exc:
        typer.echo(f"error: {path}: {exc.error_count()} schema error(s)", err=True)
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=_EXIT_INVALID_INPUT) from exc


@contextmanager
def _budget(config: PassConfig) -> Iterator[None]:
    try:
        with analysis_budget_scope(timeout_ms=config.timeout_ms, gas_limit=config.gas_limit):
            yield
    except TimeoutExceeded as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=_EXIT_INVALID_INPUT) from exc


def _analyze(
    graph_path: Path,
    probes_path: Optional[Path],
    config: PassConfig,
) -> tuple[HierarchyGraph, PassResult]:
    with _input_errors(graph_path):
        graph = JsonGraphProvider(graph_path).load()
    result = classify_graph(graph, config)
    if probes_path is not None:
        gate = ExternalUsageGate(result.findings)
        with _input_errors(probes_path):
            gate.submit_all(JsonUsageSearch(probes_path).probes(result.findings))
        drained = gate.drain()
        logger.info(
            "applied %d probe(s), %d finding(s) retracted",
            drained.processed,
            len(drained.retracted),
        )
    return graph, result


def _lookup_finding(result: PassResult, method: str) -> Finding | None:
    finding = result.finding_for(method)
    if finding is None:
        typer.echo(f"{method}: not flagged", err=True)
    return finding


@app.command()
def check(
    graph_path: Path = typer.Argument(..., metavar="GRAPH", help="Hierarchy graph JSON."),
    probes: Optional[Path] = typer.Option(None, "--probes", help="External override probes JSON."),
    config: Optional[Path] = typer.Option(None, "--config"),
    workers: Optional[int] = typer.Option(None, "--workers", min=1),
    report: Optional[Path] = typer.Option(None, "--report", help="Also write the report here."),
    as_json: bool = typer.Option(False, "--json", help="Print the JSON response instead of markdown."),
    fail_on_findings: bool = typer.Option(
        False, "--fail-on-findings/--no-fail-on-findings"
    ),
) -> None:
    """Classify every method of GRAPH and report the empty ones."""
    pass_cfg = _load_pass_config(config, workers)
    with _budget(pass_cfg):
        _graph, result = _analyze(graph_path, probes, pass_cfg)
        if as_json:
            output = json.dumps(check_payload(result).model_dump(), indent=2, sort_keys=True) + "\n"
        else:
            output = render_check_report(result)
    typer.echo(output, nl=False)
    if report is not None:
        report.parent.mkdir(parents=True, exist_ok=True)
        report.write_text(output, encoding="utf-8")
    if fail_on_findings and result.reportable():
        raise typer.Exit(code=_EXIT_FINDINGS)


@app.command()
def plan(
    graph_path: Path = typer.Argument(..., metavar="GRAPH"),
    method: str = typer.Argument(..., help="Id of the flagged method."),
    probes: Optional[Path] = typer.Option(None, "--probes"),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Print the deletion plan for METHOD as JSON."""
    pass_cfg = _load_pass_config(config, None)
    planner = DeletionPlanner(_load_plan_config(config))
    with _budget(pass_cfg):
        graph, result = _analyze(graph_path, probes, pass_cfg)
        finding = _lookup_finding(result, method)
        deletion_plan = None
        if finding is not None:
            try:
                deletion_plan = planner.plan(finding, graph)
            except FindingRetracted as exc:
                typer.echo(f"error: {exc}", err=True)
                raise typer.Exit(code=_EXIT_FINDINGS) from exc
    payload = plan_payload(method, deletion_plan)
    typer.echo(json.dumps(payload.model_dump(), indent=2, sort_keys=True))


@app.command()
def apply(
    graph_path: Path = typer.Argument(..., metavar="GRAPH"),
    method: str = typer.Argument(...),
    output: Path = typer.Option(..., "--output", "-o", help="Where to write the pruned graph."),
    probes: Optional[Path] = typer.Option(None, "--probes"),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Remove the planned methods from GRAPH and write the resulting graph."""
    pass_cfg = _load_pass_config(config, None)
    planner = DeletionPlanner(_load_plan_config(config))
    with _budget(pass_cfg):
        graph, result = _analyze(graph_path, probes, pass_cfg)
        finding = _lookup_finding(result, method)
        if finding is None:
            raise typer.Exit(code=_EXIT_FINDINGS)
        try:
            deletion_plan = planner.plan(finding, graph)
        except FindingRetracted as exc:
            typer.echo(f"error: {exc}", err=True)
            raise typer.Exit(code=_EXIT_FINDINGS) from exc
        removal = GraphRemovalExecutor().remove(deletion_plan, graph)
        output.parent.mkdir(parents=True, exist_ok=True)
        write_graph_payload(removal.graph, output)
    for node_id, outcome in removal.outcomes.items():
        typer.echo(f"{outcome.value}: {node_id}")


if __name__ == "__main__":  # pragma: no cover
    app()
