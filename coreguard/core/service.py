"""
CoreGuard - Integrity service.

Entry point for callers (CLI, web layers): refresh the manifest, run a full
scan, re-check one file, or diff one file against the release. Every
operation returns a {"status": "success"|"error", ...} envelope and never
raises engine errors. Authentication is the caller's job.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import requests

from coreguard.core.alerts import AlertManager
from coreguard.core.cache import JsonFileTTLCache, MemoryTTLCache
from coreguard.core.diff_renderer import DiffRenderer
from coreguard.core.diff_reporter import DiffReporter
from coreguard.core.errors import ConfigError, CoreGuardError, InvalidPath
from coreguard.core.exclusions import DEFAULT_EXCLUDED_PATTERNS
from coreguard.core.manifest_source import HttpManifestSource
from coreguard.core.manifest_store import ManifestStore
from coreguard.core.models import DiffResult, ScanRun, Severity
from coreguard.core.paths import normalize_relative_path
from coreguard.core.remote import SvnFileSource
from coreguard.core.scan_engine import ScanEngine, StopEvent

logger = logging.getLogger(__name__)


def success(**payload: Any) -> dict[str, Any]:
    """Build a success envelope."""
    return {"status": "success", "payload": payload}


def error(message: str, code: str = "error", logs: Optional[list[str]] = None) -> dict[str, Any]:
    """Build an error envelope."""
    envelope: dict[str, Any] = {"status": "error", "code": code, "message": message}
    if logs:
        envelope["logs"] = logs
    return envelope


def _error_from(exc: CoreGuardError, logs: Optional[list[str]] = None) -> dict[str, Any]:
    return error(str(exc), exc.code, logs)


class IntegrityService:
    """
    Holds the per-process components. Construct once and share; the only
    shared mutable state is the manifest cache inside the store.
    """

    def __init__(
        self,
        release_id: str,
        root_dir: Union[str, Path],
        store: ManifestStore,
        engine: ScanEngine,
        reporter: DiffReporter,
        renderer: Optional[DiffRenderer] = None,
        alerts: Optional[AlertManager] = None,
        excluded_patterns: Sequence[str] = DEFAULT_EXCLUDED_PATTERNS,
    ) -> None:
        self.release_id = release_id
        self.root_dir = Path(root_dir)
        self.store = store
        self.engine = engine
        self.reporter = reporter
        self.renderer = renderer or DiffRenderer()
        self.alerts = alerts
        self.excluded_patterns = tuple(excluded_patterns)
        self.last_run: Optional[ScanRun] = None

    def has_manifest(self) -> bool:
        """Whether a manifest is cached; callers prompt for an update when it is not."""
        return self.store.has_cached(self.release_id)

    def trigger_manifest_refresh(self, release_id: Optional[str] = None, force: bool = False) -> dict[str, Any]:
        release = release_id or self.release_id
        try:
            manifest = self.store.refresh(release) if force else self.store.get(release)
        except CoreGuardError as e:
            logger.error("Could not build core list for %s: %s", release, e)
            return _error_from(e, ["Could not build core list."])
        return success(release=release, files=len(manifest), logs=["Update database finished."])

    def trigger_full_scan(
        self,
        root_dir: Optional[Union[str, Path]] = None,
        stop_event: Optional[StopEvent] = None,
    ) -> dict[str, Any]:
        root = Path(root_dir) if root_dir else self.root_dir
        if not root.is_dir():
            return _error_from(InvalidPath(f"Installation root is not a directory: {root}"))
        try:
            manifest = self.store.get(self.release_id)
            run = self.engine.run_full_scan(root, manifest, self.excluded_patterns, stop_event=stop_event)
        except CoreGuardError as e:
            logger.error("Core scan failed: %s", e)
            return _error_from(e)
        self.last_run = run
        if self.alerts is not None:
            self.alerts.emit_batch(run.findings)
        logs = [f"Core scanner finished. Scanned {run.total_scanned:,} files."]
        return success(logs=logs, **run.to_dict())

    def trigger_check(self, relative_path: str) -> dict[str, Any]:
        try:
            manifest = self.store.get(self.release_id)
            finding = self.engine.check(self.root_dir, manifest, relative_path)
        except CoreGuardError as e:
            return _error_from(e)
        if finding is not None and self.alerts is not None:
            self.alerts.emit(finding)
        return success(file=normalize_relative_path(relative_path), finding=finding.to_dict() if finding else None)

    def compare_file(self, relative_path: str) -> DiffResult:
        """Diff one release file against its upstream copy; raises CoreGuardError."""
        manifest = self.store.get(self.release_id)
        return self.reporter.diff(self.release_id, manifest, relative_path)

    def trigger_diff(self, relative_path: str) -> dict[str, Any]:
        try:
            result = self.compare_file(relative_path)
        except CoreGuardError as e:
            logger.warning("Diff of %r failed: %s", relative_path, e)
            return _error_from(e)
        return success(
            file=result.path,
            release=result.release_id,
            inserted=result.inserted_count,
            deleted=result.deleted_count,
            html=self.renderer.render_html(result),
            text=self.renderer.render_text(result),
        )


def build_service(config: dict[str, Any], session: Optional[requests.Session] = None) -> IntegrityService:
    """Wire up an IntegrityService from a loaded config dict."""
    if not config["release_id"]:
        raise ConfigError("No release configured; set release.id or COREGUARD_RELEASE")
    session = session or requests.Session()
    cache_path = config.get("manifest_cache_path")
    cache = JsonFileTTLCache(cache_path) if cache_path else MemoryTTLCache()
    store = ManifestStore(
        HttpManifestSource(
            config["manifest_url_template"],
            timeout=config["manifest_timeout_seconds"],
            session=session,
        ),
        cache,
        ttl_seconds=config["manifest_ttl_seconds"],
    )
    remote = SvnFileSource(
        config["remote_url_template"],
        timeout=config["remote_timeout_seconds"],
        session=session,
    )
    alerts = AlertManager(
        log_path=config.get("alert_log_path"),
        console_alerts=config.get("console_alerts", True),
        min_severity=Severity(config.get("min_severity", "INFO")),
    )
    return IntegrityService(
        release_id=config["release_id"],
        root_dir=config["root_dir"],
        store=store,
        engine=ScanEngine(max_workers=config.get("max_workers", 1)),
        reporter=DiffReporter(config["root_dir"], remote),
        alerts=alerts,
        excluded_patterns=config["excluded_patterns"],
    )
