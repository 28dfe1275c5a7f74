"""Shared pytest fixtures: installation trees, fake manifest source, fake HTTP session."""

import threading
from pathlib import Path
from typing import Optional, Union

import pytest
import requests

from coreguard.core.cache import MemoryTTLCache
from coreguard.core.errors import ManifestUnavailable
from coreguard.core.manifest_store import ManifestStore
from coreguard.core.models import Manifest, ManifestEntry


def write_tree(root: Path, files: dict[str, Union[int, bytes, str]]) -> Path:
    """Create files under root; an int value writes that many bytes."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, int):
            path.write_bytes(b"x" * content)
        elif isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_bytes(content)
    return root


def make_manifest(sizes: dict[str, int], release_id: str = "6.4.3") -> Manifest:
    return Manifest(release_id, [ManifestEntry(p, s) for p, s in sizes.items()])


class FakeManifestSource:
    """Counts downloads; optionally blocks on a gate or fails."""

    def __init__(self, sizes: Optional[dict[str, int]] = None, gate: Optional[threading.Event] = None) -> None:
        self.sizes = sizes if sizes is not None else {"a.php": 100, "b.php": 50}
        self.gate = gate
        self.fail = False
        self.calls = 0
        self._lock = threading.Lock()

    def download_manifest(self, release_id: str) -> list[ManifestEntry]:
        with self._lock:
            self.calls += 1
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.fail:
            raise ManifestUnavailable("download failed")
        return [ManifestEntry(p, s) for p, s in self.sizes.items()]


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b"", json_data=None) -> None:
        self.status_code = status_code
        self.content = content
        self._json = json_data

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json


class FakeSession:
    """Stands in for requests.Session; records every GET."""

    def __init__(self, response: Optional[FakeResponse] = None, exc: Optional[Exception] = None) -> None:
        self.response = response or FakeResponse()
        self.exc = exc
        self.calls: list[tuple[str, float]] = []

    def get(self, url: str, timeout: float = None):
        self.calls.append((url, timeout))
        if self.exc is not None:
            raise self.exc
        return self.response


class FakeRemoteSource:
    def __init__(self, content: bytes = b"", exc: Optional[Exception] = None) -> None:
        self.content = content
        self.exc = exc
        self.calls: list[tuple[str, str]] = []

    def fetch_remote_file(self, release_id: str, relative_path: str) -> bytes:
        self.calls.append((release_id, relative_path))
        if self.exc is not None:
            raise self.exc
        return self.content


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def manifest_source() -> FakeManifestSource:
    return FakeManifestSource()


@pytest.fixture
def store(manifest_source: FakeManifestSource, clock: FakeClock) -> ManifestStore:
    return ManifestStore(manifest_source, MemoryTTLCache(clock=clock), ttl_seconds=4 * 3600)


@pytest.fixture
def install_root(tmp_path: Path) -> Path:
    """Installation with a.php (100 bytes, matches), b.php (60, modified), c.php (10, unexpected)."""
    return write_tree(tmp_path / "site", {"a.php": 100, "b.php": 60, "c.php": 10})
