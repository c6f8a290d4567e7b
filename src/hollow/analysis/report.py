from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from hollow.analysis.findings import DISPLAY_NAME, GROUP_DISPLAY_NAME, SHORT_NAME
from hollow.analysis.pipeline import PassResult
from hollow.analysis.timeout_context import check_deadline
from hollow.invariants import never
from hollow.refactor.deletion_plan import DeletionPlan
from hollow.schema import (
    CheckResponseDTO,
    DeletionPlanDTO,
    DiagnosticDTO,
    FindingDTO,
)


@dataclass
class ReportDoc:
    title: str
    _lines: list[str] = field(default_factory=list)

    def line(self, value: str = "") -> None:
        self._lines.append(value)

    def header(self, level: int, title: str) -> None:
        if level < 1 or level > 6:
            never("report header level out of range", level=level)
        self._lines.append(f"{'#' * level} {title}")

    def bullets(self, items: Iterable[str]) -> None:
        for item in items:
            check_deadline()
            self._lines.append(f"- {item}")

    def table(self, headers: Sequence[str], rows: Iterable[Sequence[object]]) -> None:
        header_cells = [str(entry) for entry in headers]
        if not header_cells:
            never("report table requires at least one header")
        self._lines.append("| " + " | ".join(header_cells) + " |")
        self._lines.append("| " + " | ".join("---" for _ in header_cells) + " |")
        for row in rows:
            check_deadline()
            cells = [str(entry) for entry in row]
            if len(cells) != len(header_cells):
                never(
                    "report table row length mismatch",
                    expected=len(header_cells),
                    actual=len(cells),
                )
            self._lines.append("| " + " | ".join(cells) + " |")

    def emit(self) -> str:
        return "\n".join([f"# {self.title}", "", *self._lines]).rstrip() + "\n"


def check_payload(result: PassResult) -> CheckResponseDTO:
    return CheckResponseDTO(
        findings=[
            FindingDTO(
                method=finding.node_id,
                category=finding.category.value,
                message_code=finding.message_code,
                message=finding.message,
                reportable=finding.reportable,
                retracted_by=None if finding.reportable else finding.retracted_by,
            )
            for finding in result.findings
        ],
        diagnostics=[
            DiagnosticDTO(
                method=diagnostic.node_id,
                kind=diagnostic.kind.value,
                reference=diagnostic.reference,
                detail=diagnostic.detail,
            )
            for diagnostic in result.diagnostics
        ],
        stats=dict(result.stats),
    )


def plan_payload(node_id: str, plan: DeletionPlan | None) -> DeletionPlanDTO:
    if plan is None:
        return DeletionPlanDTO(method=node_id)
    return DeletionPlanDTO(
        method=node_id,
        category=plan.category.value,
        entries=list(plan.entries),
    )


def render_check_report(result: PassResult) -> str:
    doc = ReportDoc(title=f"{DISPLAY_NAME} ({SHORT_NAME})")
    doc.line(f"Group: {GROUP_DISPLAY_NAME}")
    doc.line()
    doc.header(2, "Summary")
    doc.table(
        ["metric", "value"],
        [(key, result.stats[key]) for key in sorted(result.stats)],
    )
    doc.line()
    doc.header(2, "Findings")
    if result.findings:
        doc.table(
            ["method", "category", "message", "reportable"],
            [
                (
                    f"`{finding.node_id}`",
                    finding.category.value,
                    finding.message,
                    "yes" if finding.reportable else "no (retracted)",
                )
                for finding in result.findings
            ],
        )
    else:
        doc.line("No empty methods found.")
    if result.diagnostics:
        doc.line()
        doc.header(2, "Diagnostics")
        doc.bullets(
            f"`{diagnostic.node_id}`: {diagnostic.kind.value}"
            + (f" -> `{diagnostic.reference}`" if diagnostic.reference else "")
            + (f" ({diagnostic.detail})" if diagnostic.detail else "")
            for diagnostic in result.diagnostics
        )
    return doc.emit()
