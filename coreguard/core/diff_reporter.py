"""
CoreGuard - Diff reporter.

Compares a local release file with its upstream copy. The manifest check
runs before any disk or network access so only known release files can be
read or fetched.
"""

import logging
from pathlib import Path
from typing import Protocol, Union

from coreguard.core.differ import compute_diff
from coreguard.core.errors import FileReadError, PathNotInManifest
from coreguard.core.models import DiffResult, Manifest
from coreguard.core.paths import normalize_relative_path, resolve_under_root

logger = logging.getLogger(__name__)


class RemoteFileSource(Protocol):
    def fetch_remote_file(self, release_id: str, relative_path: str) -> bytes:
        ...


class DiffReporter:
    """Builds DiffResults for files of the installation at root_dir."""

    def __init__(self, root_dir: Union[str, Path], remote_source: RemoteFileSource) -> None:
        self.root_dir = Path(root_dir)
        self.remote_source = remote_source

    def diff(self, release_id: str, manifest: Manifest, relative_path: str) -> DiffResult:
        rel = normalize_relative_path(relative_path)
        if rel not in manifest:
            raise PathNotInManifest(f"File is not included in core: {rel}")

        local_path = resolve_under_root(self.root_dir, rel)
        try:
            local_data = local_path.read_bytes()
        except OSError as e:
            raise FileReadError(f"Cannot read {rel}: {e}") from e

        remote_data = self.remote_source.fetch_remote_file(release_id, rel)

        result = DiffResult(release_id=release_id, path=rel, segments=compute_diff(remote_data, local_data))
        logger.info(
            "Compared %s with release %s: +%d -%d lines",
            rel,
            release_id,
            result.inserted_count,
            result.deleted_count,
        )
        return result
