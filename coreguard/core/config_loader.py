"""
CoreGuard - Configuration loader.

Loads and validates config.yaml; resolves paths relative to project root.
The release and installation root may be overridden from the environment
(COREGUARD_RELEASE, COREGUARD_ROOT).
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from coreguard.core.errors import ConfigError
from coreguard.core.exclusions import DEFAULT_EXCLUDED_PATTERNS
from coreguard.core.manifest_store import MANIFEST_TTL_SECONDS
from coreguard.core.models import Severity
from coreguard.core.remote import DEFAULT_REMOTE_URL_TEMPLATE

logger = logging.getLogger(__name__)


def _positive(value: Any, name: str, cast=float):
    try:
        number = cast(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a number, got {value!r}") from e
    if number <= 0:
        raise ConfigError(f"{name} must be positive, got {value!r}")
    return number


def load_config(config_path: Path, project_root: Optional[Path] = None) -> dict[str, Any]:
    """
    Load YAML config and resolve paths relative to project_root.

    Args:
        config_path: Path to config.yaml.
        project_root: Base for relative paths; defaults to the config file's directory.

    Returns:
        Config dict with resolved paths and defaults applied.
    """
    path = config_path.resolve()
    if not path.is_file():
        raise FileNotFoundError(f"Config not found: {path}")

    root = project_root or path.parent
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")

    release_raw = raw.get("release") or {}
    release_id = os.environ.get("COREGUARD_RELEASE", "").strip() or str(release_raw.get("id") or "").strip()

    scan_raw = raw.get("scan") or {}
    root_dir = os.environ.get("COREGUARD_ROOT", "").strip() or scan_raw.get("root_dir", ".")
    excluded = scan_raw.get("excluded_patterns")
    if excluded is None:
        excluded_patterns = list(DEFAULT_EXCLUDED_PATTERNS)
    elif isinstance(excluded, list) and all(isinstance(p, str) for p in excluded):
        excluded_patterns = [p for p in excluded if p]
    else:
        raise ConfigError("scan.excluded_patterns must be a list of strings")
    max_workers = int(_positive(scan_raw.get("max_workers", 1), "scan.max_workers", int))

    manifest_raw = raw.get("manifest") or {}
    manifest_url = str(manifest_raw.get("url_template") or "")
    if "{release}" not in manifest_url:
        raise ConfigError("manifest.url_template must contain {release}")
    ttl_seconds = _positive(manifest_raw.get("ttl_seconds", MANIFEST_TTL_SECONDS), "manifest.ttl_seconds")
    manifest_timeout = _positive(manifest_raw.get("timeout_seconds", 30), "manifest.timeout_seconds")
    cache_path = manifest_raw.get("cache_path", "./cache/manifests.json")

    remote_raw = raw.get("remote") or {}
    remote_url = str(remote_raw.get("url_template", DEFAULT_REMOTE_URL_TEMPLATE))
    if "{release}" not in remote_url or "{path}" not in remote_url:
        raise ConfigError("remote.url_template must contain {release} and {path}")
    remote_timeout = _positive(remote_raw.get("timeout_seconds", 15), "remote.timeout_seconds")

    alerts_raw = raw.get("alerts") or {}
    log_path = alerts_raw.get("log_path", "./logs/findings.log")
    console_alerts = bool(alerts_raw.get("console_alerts", True))
    min_severity = str(alerts_raw.get("min_severity", "INFO")).upper()
    if min_severity not in Severity.__members__:
        raise ConfigError(f"alerts.min_severity must be one of {', '.join(Severity.__members__)}")

    def resolve(p: str) -> Path:
        path_obj = Path(p).expanduser()
        return (root / path_obj).resolve() if not path_obj.is_absolute() else path_obj.resolve()

    alert_log_path = resolve(log_path) if log_path else None
    report_dir = alert_log_path.parent if alert_log_path else resolve("./logs")

    return {
        "project_root": root,
        "release_id": release_id,
        "root_dir": resolve(str(root_dir)),
        "excluded_patterns": excluded_patterns,
        "max_workers": max_workers,
        "manifest_url_template": manifest_url,
        "manifest_ttl_seconds": ttl_seconds,
        "manifest_timeout_seconds": manifest_timeout,
        "manifest_cache_path": resolve(cache_path) if cache_path else None,
        "remote_url_template": remote_url,
        "remote_timeout_seconds": remote_timeout,
        "alert_log_path": alert_log_path,
        "console_alerts": console_alerts,
        "min_severity": min_severity,
        "report_path": report_dir / "scan_report.txt",
    }
