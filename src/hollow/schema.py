from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel

AccessName = Literal["private", "package", "protected", "public"]


class MethodNodeDTO(BaseModel):
    id: str
    has_body: bool = True
    is_body_empty: bool = False
    only_delegates: bool = False
    constructor: bool = False
    synthetic: bool = False
    access: AccessName = "public"
    overrides: Optional[List[str]] = None
    overridden_by: Optional[List[str]] = None


class HierarchyGraphDTO(BaseModel):
    methods: List[MethodNodeDTO]


class UsageProbeDTO(BaseModel):
    method: str
    has_body: bool = True
    is_body_empty: bool = False
    only_delegates: bool = False
    origin: str = ""


class UsageProbeBatchDTO(BaseModel):
    probes: List[UsageProbeDTO] = []


class FindingDTO(BaseModel):
    method: str
    category: str
    message_code: str
    message: str
    reportable: bool
    retracted_by: Optional[str] = None


class DiagnosticDTO(BaseModel):
    method: str
    kind: str
    reference: str = ""
    detail: str = ""


class DeletionPlanDTO(BaseModel):
    method: str
    category: Optional[str] = None
    entries: List[str] = []


class CheckResponseDTO(BaseModel):
    findings: List[FindingDTO]
    diagnostics: List[DiagnosticDTO] = []
    stats: Dict[str, int] = {}
