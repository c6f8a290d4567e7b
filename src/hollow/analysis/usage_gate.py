"""Retraction of findings from overrides found outside the analyzed graph.

The usage-search collaborator runs after the pass and reports, one message
per override it discovers, what that override's body looks like. A single
override with real behavior is enough to make the finding unsound, so the
finding is retracted and later messages for it are skipped.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Iterable, Mapping

from hollow.analysis.findings import Finding

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExternalOverrideProbe:
    has_body: bool
    is_body_empty: bool = False
    is_only_delegating_call: bool = False
    origin: str = ""

    @property
    def has_behavior(self) -> bool:
        if not self.has_body:
            return False
        if self.is_body_empty:
            return False
        return not self.is_only_delegating_call


@dataclass(frozen=True)
class UsageProbeMessage:
    finding_key: str
    probe: ExternalOverrideProbe


@dataclass(frozen=True)
class DrainReport:
    retracted: tuple[str, ...] = ()
    processed: int = 0
    skipped: int = 0
    unknown: int = 0


def retract(finding: Finding, probe: ExternalOverrideProbe) -> bool:
    """Apply one probe; returns whether the finding is retracted afterwards."""
    if not finding.reportable:
        return True
    if probe.has_behavior and finding.retract(probe.origin):
        logger.debug(
            "retracted %s (%s): override %s has behavior",
            finding.node_id,
            finding.category.value,
            probe.origin or "<external>",
        )
    return not finding.reportable


class ExternalUsageGate:
    """Queue of probe messages keyed by the id of the flagged method."""

    def __init__(self, findings: Iterable[Finding] | Mapping[str, Finding]) -> None:
        if isinstance(findings, Mapping):
            self._findings = dict(findings)
        else:
            self._findings = {finding.node_id: finding for finding in findings}
        self._queue: queue.SimpleQueue[UsageProbeMessage] = queue.SimpleQueue()
        self._drain_lock = threading.Lock()

    def finding(self, key: str) -> Finding | None:
        return self._findings.get(key)

    def retract(self, finding: Finding, probe: ExternalOverrideProbe) -> bool:
        return retract(finding, probe)

    def submit(self, message: UsageProbeMessage) -> None:
        self._queue.put(message)

    def submit_all(self, messages: Iterable[UsageProbeMessage]) -> None:
        for message in messages:
            self._queue.put(message)

    def pending(self) -> int:
        return self._queue.qsize()

    def cancel(self) -> int:
        """Drop queued probes; their findings stay as they are."""
        dropped = 0
        with self._drain_lock:
            while True:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    break
                dropped += 1
        if dropped:
            logger.debug("usage probing cancelled, %d probe(s) dropped", dropped)
        return dropped

    def drain(self) -> DrainReport:
        retracted: list[str] = []
        processed = skipped = unknown = 0
        with self._drain_lock:
            while True:
                try:
                    message = self._queue.get_nowait()
                except queue.Empty:
                    break
                finding = self._findings.get(message.finding_key)
                if finding is None:
                    unknown += 1
                    continue
                if not finding.reportable:
                    skipped += 1
                    continue
                processed += 1
                if retract(finding, message.probe):
                    retracted.append(finding.node_id)
        return DrainReport(
            retracted=tuple(retracted),
            processed=processed,
            skipped=skipped,
            unknown=unknown,
        )
