"""Tests for size classification and full scans."""

import os
import threading
from pathlib import Path

import pytest
from conftest import make_manifest, write_tree

from coreguard.core import scan_engine
from coreguard.core.errors import FileReadError, InvalidPath, ScanCancelled
from coreguard.core.models import ErrorCode
from coreguard.core.scan_engine import ScanEngine, classify

MANIFEST = make_manifest({"a.php": 100, "b.php": 50})


def test_classify_unknown_path_is_unexpected() -> None:
    finding = classify("c.php", 10, MANIFEST)
    assert finding.error_code is ErrorCode.UNEXPECTED_FILE
    assert finding.message == "Unexpected file"
    assert finding.observed_size == 10
    assert finding.scanner_kind == "core_scanner"


def test_classify_matching_size_is_silent() -> None:
    assert classify("a.php", 100, MANIFEST) is None


def test_classify_size_mismatch_is_modified() -> None:
    finding = classify("b.php", 60, MANIFEST)
    assert finding.error_code is ErrorCode.MODIFIED_FILE
    assert finding.message == "Modified file"


def test_end_to_end_scan(install_root: Path) -> None:
    run = ScanEngine().run_full_scan(install_root, MANIFEST, [])

    assert run.total_scanned == 3
    assert [(f.relative_path, f.error_code) for f in run.findings] == [
        ("b.php", ErrorCode.MODIFIED_FILE),
        ("c.php", ErrorCode.UNEXPECTED_FILE),
    ]
    assert run.skipped == []


def test_scan_is_idempotent(install_root: Path) -> None:
    engine = ScanEngine()
    first = engine.run_full_scan(install_root, MANIFEST, [])
    second = engine.run_full_scan(install_root, MANIFEST, [])

    assert first.findings == second.findings
    assert first.total_scanned == second.total_scanned


def test_parallel_scan_matches_serial_scan(tmp_path: Path) -> None:
    files = {f"wp-admin/f{i:03d}.php": i for i in range(60)}
    write_tree(tmp_path, files)
    manifest = make_manifest({p: (s if i % 3 else s + 1) for i, (p, s) in enumerate(files.items())})

    serial = ScanEngine(max_workers=1).run_full_scan(tmp_path, manifest, [])
    parallel = ScanEngine(max_workers=8).run_full_scan(tmp_path, manifest, [])

    assert parallel.findings == serial.findings
    assert parallel.total_scanned == serial.total_scanned == 60
    assert len(serial.findings) == 20


def test_excluded_paths_are_not_scanned(tmp_path: Path) -> None:
    write_tree(tmp_path, {"a.php": 100, "wp-content/evil.php": 1, "notes.txt": 3})

    run = ScanEngine().run_full_scan(tmp_path, MANIFEST, [".txt", "wp-content/"])

    assert run.total_scanned == 1
    assert run.findings == []


def test_file_deleted_during_scan_is_skipped(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    write_tree(tmp_path, {"a.php": 100, "c.php": 10})

    class VanishingWalker:
        def __init__(self, excluded_patterns) -> None:
            pass

        def walk(self, root):
            yield "a.php"
            yield "gone.php"
            yield "c.php"

    monkeypatch.setattr(scan_engine, "TreeWalker", VanishingWalker)

    run = ScanEngine().run_full_scan(tmp_path, MANIFEST, [])

    assert run.skipped == ["gone.php"]
    assert run.total_scanned == 3
    assert [f.relative_path for f in run.findings] == ["c.php"]


@pytest.mark.parametrize("workers", [1, 4])
def test_cancelled_scan_raises_and_returns_nothing(install_root: Path, workers: int) -> None:
    stop = threading.Event()
    stop.set()

    with pytest.raises(ScanCancelled):
        ScanEngine(max_workers=workers).run_full_scan(install_root, MANIFEST, [], stop_event=stop)


def test_cancel_between_file_visits(install_root: Path) -> None:
    visits = []

    def stop_after_first() -> bool:
        visits.append(1)
        return len(visits) > 1

    with pytest.raises(ScanCancelled):
        ScanEngine().run_full_scan(install_root, MANIFEST, [], stop_event=stop_after_first)
    assert len(visits) == 2


def test_check_single_file(install_root: Path) -> None:
    engine = ScanEngine()

    assert engine.check(install_root, MANIFEST, "a.php") is None
    assert engine.check(install_root, MANIFEST, "b.php").error_code is ErrorCode.MODIFIED_FILE
    assert engine.check(install_root, MANIFEST, "./c.php").error_code is ErrorCode.UNEXPECTED_FILE


def test_check_missing_file_raises(install_root: Path) -> None:
    with pytest.raises(FileReadError):
        ScanEngine().check(install_root, MANIFEST, "missing.php")


@pytest.mark.parametrize("path", ["", "../a.php", "/etc/passwd"])
def test_check_rejects_invalid_paths(install_root: Path, path: str) -> None:
    with pytest.raises(InvalidPath):
        ScanEngine().check(install_root, MANIFEST, path)


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_scan_and_check_stay_inside_the_root(tmp_path: Path) -> None:
    site = tmp_path / "site"
    write_tree(site, {"a.php": 100})
    write_tree(tmp_path / "outside", {"secret.php": 1234})
    os.symlink(tmp_path / "outside", site / "wp-admin")
    os.symlink(tmp_path / "outside" / "secret.php", site / "leak.php")
    engine = ScanEngine()

    run = engine.run_full_scan(site, MANIFEST, [])

    assert run.findings == []
    assert run.total_scanned == 1
    with pytest.raises(InvalidPath):
        engine.check(site, MANIFEST, "wp-admin/secret.php")
    with pytest.raises(InvalidPath):
        engine.check(site, MANIFEST, "leak.php")
