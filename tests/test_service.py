"""Tests for the envelope-returning service operations."""

import json
import threading
from pathlib import Path

import pytest
from conftest import FakeManifestSource, FakeRemoteSource

from coreguard.core.alerts import AlertManager
from coreguard.core.cache import MemoryTTLCache
from coreguard.core.diff_reporter import DiffReporter
from coreguard.core.errors import RemoteUnavailable
from coreguard.core.manifest_store import ManifestStore
from coreguard.core.scan_engine import ScanEngine
from coreguard.core.service import IntegrityService


@pytest.fixture
def remote() -> FakeRemoteSource:
    return FakeRemoteSource(b"x" * 50)


@pytest.fixture
def service(install_root: Path, manifest_source: FakeManifestSource, remote: FakeRemoteSource, tmp_path: Path) -> IntegrityService:
    store = ManifestStore(manifest_source, MemoryTTLCache())
    return IntegrityService(
        release_id="6.4.3",
        root_dir=install_root,
        store=store,
        engine=ScanEngine(),
        reporter=DiffReporter(install_root, remote),
        alerts=AlertManager(tmp_path / "logs" / "findings.log", console_alerts=False),
        excluded_patterns=[],
    )


def test_manifest_refresh_success(service: IntegrityService) -> None:
    assert not service.has_manifest()

    envelope = service.trigger_manifest_refresh()

    assert envelope["status"] == "success"
    assert envelope["payload"]["files"] == 2
    assert envelope["payload"]["logs"] == ["Update database finished."]
    assert service.has_manifest()


def test_manifest_refresh_failure(service: IntegrityService, manifest_source: FakeManifestSource) -> None:
    manifest_source.fail = True

    envelope = service.trigger_manifest_refresh()

    assert envelope["status"] == "error"
    assert envelope["code"] == "manifest_unavailable"
    assert envelope["logs"] == ["Could not build core list."]


def test_full_scan_envelope(service: IntegrityService, tmp_path: Path) -> None:
    envelope = service.trigger_full_scan()

    assert envelope["status"] == "success"
    payload = envelope["payload"]
    assert payload["total_scanned"] == 3
    assert [(f["file"], f["error_code"]) for f in payload["findings"]] == [("b.php", "0020"), ("c.php", "0010")]
    assert payload["logs"] == ["Core scanner finished. Scanned 3 files."]
    json.dumps(envelope)

    lines = (tmp_path / "logs" / "findings.log").read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["file"] for line in lines] == ["b.php", "c.php"]


def test_full_scan_without_manifest_fails(service: IntegrityService, manifest_source: FakeManifestSource) -> None:
    manifest_source.fail = True

    envelope = service.trigger_full_scan()

    assert envelope["status"] == "error"
    assert envelope["code"] == "manifest_unavailable"


def test_full_scan_rejects_missing_root(service: IntegrityService, tmp_path: Path) -> None:
    envelope = service.trigger_full_scan(tmp_path / "nowhere")
    assert envelope == {"status": "error", "code": "invalid_path", "message": envelope["message"]}


def test_cancelled_scan_returns_error_and_keeps_last_run(service: IntegrityService) -> None:
    stop = threading.Event()
    stop.set()

    envelope = service.trigger_full_scan(stop_event=stop)

    assert envelope["code"] == "scan_cancelled"
    assert service.last_run is None


def test_check_envelopes(service: IntegrityService) -> None:
    assert service.trigger_check("a.php")["payload"]["finding"] is None
    assert service.trigger_check("b.php")["payload"]["finding"]["error_code"] == "0020"
    assert service.trigger_check("")["code"] == "invalid_path"
    assert service.trigger_check("nope.php")["code"] == "file_read_error"


def test_check_reports_the_normalized_path(service: IntegrityService) -> None:
    assert service.trigger_check("./a.php")["payload"]["file"] == "a.php"


def test_diff_envelope(service: IntegrityService, remote: FakeRemoteSource) -> None:
    envelope = service.trigger_diff("b.php")

    assert envelope["status"] == "success"
    payload = envelope["payload"]
    assert payload["deleted"] == 1
    assert payload["inserted"] == 1
    assert "<table" in payload["html"]
    assert payload["text"].startswith("--- b.php")
    json.dumps(envelope)


def test_diff_of_unknown_file_makes_no_network_call(service: IntegrityService, remote: FakeRemoteSource) -> None:
    envelope = service.trigger_diff("c.php")

    assert envelope["status"] == "error"
    assert envelope["code"] == "path_not_in_manifest"
    assert remote.calls == []


def test_diff_remote_unavailable(service: IntegrityService, remote: FakeRemoteSource) -> None:
    remote.exc = RemoteUnavailable("Could not connect to upstream source")

    envelope = service.trigger_diff("b.php")

    assert envelope["code"] == "remote_unavailable"
