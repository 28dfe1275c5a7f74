"""
CoreGuard - Scan plan.

Each scanner contributes an ordered list of step descriptors; the
coordinator concatenates them into one plan and runs every step through an
explicit kind -> handler table.
"""

import logging
from typing import Any, Callable, Optional, Sequence

from coreguard.core.models import ScanStep, StepKind
from coreguard.core.scan_engine import StopEvent
from coreguard.core.service import IntegrityService, error, success

logger = logging.getLogger(__name__)


class CoreScanner:
    """Contributes the core-files steps: refresh the manifest, then scan."""

    def __init__(self, release_id: str) -> None:
        self.release_id = release_id

    def register_steps(self, steps: list[ScanStep]) -> list[ScanStep]:
        steps.append(
            ScanStep(
                kind=StepKind.UPDATE_MANIFEST,
                log=f"Downloading core files list for WordPress {self.release_id}..",
                params={"release_id": self.release_id},
            )
        )
        steps.append(ScanStep(kind=StepKind.CORE_SCAN, log="Scanning core files.."))
        return steps


class ScanCoordinator:
    """Builds the plan from its scanners and executes it against a service."""

    def __init__(self, service: IntegrityService, scanners: Sequence[Any]) -> None:
        self.service = service
        self.scanners = list(scanners)
        self._handlers: dict[StepKind, Callable[[ScanStep, Optional[StopEvent]], dict[str, Any]]] = {
            StepKind.UPDATE_MANIFEST: self._run_update_manifest,
            StepKind.CORE_SCAN: self._run_core_scan,
        }

    def build_plan(self) -> list[ScanStep]:
        steps: list[ScanStep] = []
        for scanner in self.scanners:
            steps = scanner.register_steps(steps)
        return steps

    def _run_update_manifest(self, step: ScanStep, stop_event: Optional[StopEvent]) -> dict[str, Any]:
        return self.service.trigger_manifest_refresh(step.params.get("release_id"))

    def _run_core_scan(self, step: ScanStep, stop_event: Optional[StopEvent]) -> dict[str, Any]:
        return self.service.trigger_full_scan(step.params.get("root_dir"), stop_event=stop_event)

    def run_plan(self, stop_event: Optional[StopEvent] = None) -> dict[str, Any]:
        """
        Run every step in order. Stops at the first error envelope; the
        returned envelope carries the logs collected so far.
        """
        logs: list[str] = []
        results: list[dict[str, Any]] = []
        for step in self.build_plan():
            logger.debug("Running step %s", step.kind.value)
            logs.append(step.log)
            handler = self._handlers.get(step.kind)
            if handler is None:
                return error(f"No handler for step {step.kind.value}", "unknown_step", logs)
            envelope = handler(step, stop_event)
            if envelope["status"] != "success":
                logs.extend(envelope.get("logs", []))
                logs.append(envelope["message"])
                return error(envelope["message"], envelope.get("code", "error"), logs)
            logs.extend(envelope["payload"].get("logs", []))
            results.append({"step": step.kind.value, "payload": envelope["payload"]})
        return success(logs=logs, steps=results)
