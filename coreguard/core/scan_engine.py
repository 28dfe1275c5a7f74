"""
CoreGuard - Scan engine.

Compares every file of an installation against the release manifest by
size and reports unexpected and modified files.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence, Union

from coreguard.core.errors import FileReadError, InvalidPath, ScanCancelled
from coreguard.core.exclusions import DEFAULT_EXCLUDED_PATTERNS
from coreguard.core.models import ERROR_MESSAGES, ErrorCode, Finding, Manifest, ScanRun
from coreguard.core.paths import normalize_relative_path, resolve_under_root
from coreguard.core.walker import TreeWalker

logger = logging.getLogger(__name__)

SCANNER_KIND = "core_scanner"

StopEvent = Union[threading.Event, Callable[[], bool]]


def classify(
    relative_path: str,
    observed_size: int,
    manifest: Manifest,
    scanner_kind: str = SCANNER_KIND,
) -> Optional[Finding]:
    """
    Apply the two size rules to one file.

    Not in manifest -> UNEXPECTED_FILE; in manifest with a different size ->
    MODIFIED_FILE; otherwise None.
    """
    expected = manifest.size_of(relative_path)
    if expected is None:
        code = ErrorCode.UNEXPECTED_FILE
    elif observed_size != expected:
        code = ErrorCode.MODIFIED_FILE
    else:
        return None
    return Finding(
        scanner_kind=scanner_kind,
        relative_path=relative_path,
        observed_size=observed_size,
        error_code=code,
        message=ERROR_MESSAGES[code],
    )


def _is_stopped(stop_event: Optional[StopEvent]) -> bool:
    if stop_event is None:
        return False
    if isinstance(stop_event, threading.Event):
        return stop_event.is_set()
    return bool(stop_event())


class ScanEngine:
    """
    Runs full scans and single-file checks.

    With max_workers > 1 the size reads run on a thread pool; findings are
    always returned sorted by path.
    """

    def __init__(self, max_workers: int = 1, scanner_kind: str = SCANNER_KIND) -> None:
        self.max_workers = max(1, int(max_workers))
        self.scanner_kind = scanner_kind

    def _file_size(self, root: Path, relative_path: str) -> int:
        target = resolve_under_root(root, relative_path)
        try:
            return os.stat(target).st_size
        except OSError as e:
            raise FileReadError(f"Cannot read {relative_path}: {e}") from e

    def check(self, root_dir: Union[str, Path], manifest: Manifest, relative_path: str) -> Optional[Finding]:
        """
        Check one file.

        Raises InvalidPath if the path resolves outside root_dir and
        FileReadError if it cannot be stat'ed.
        """
        rel = normalize_relative_path(relative_path)
        size = self._file_size(Path(root_dir), rel)
        return classify(rel, size, manifest, self.scanner_kind)

    def _check_quietly(self, root: Path, manifest: Manifest, rel: str) -> tuple[str, Optional[Finding], bool]:
        try:
            size = self._file_size(root, rel)
        except (FileReadError, InvalidPath) as e:
            logger.warning("Skipping %s", e)
            return rel, None, False
        return rel, classify(rel, size, manifest, self.scanner_kind), True

    def run_full_scan(
        self,
        root_dir: Union[str, Path],
        manifest: Manifest,
        excluded_patterns: Sequence[str] = DEFAULT_EXCLUDED_PATTERNS,
        stop_event: Optional[StopEvent] = None,
    ) -> ScanRun:
        """
        Scan every non-excluded file under root_dir.

        Raises ScanCancelled when stop_event fires; nothing partial is returned.
        """
        root = Path(root_dir).resolve()
        paths = TreeWalker(excluded_patterns).walk(root)
        if self.max_workers == 1:
            results = self._scan_serial(root, manifest, paths, stop_event)
        else:
            results = self._scan_parallel(root, manifest, paths, stop_event)

        run = ScanRun()
        for rel, finding, read_ok in results:
            run.total_scanned += 1
            if not read_ok:
                run.skipped.append(rel)
            elif finding is not None:
                run.findings.append(finding)
        run.findings.sort(key=lambda f: f.relative_path)
        run.skipped.sort()
        logger.info("Core scanner finished. Scanned %s files.", f"{run.total_scanned:,}")
        return run

    def _scan_serial(self, root, manifest, paths: Iterable[str], stop_event) -> list:
        results = []
        for rel in paths:
            if _is_stopped(stop_event):
                raise ScanCancelled("Scan cancelled")
            results.append(self._check_quietly(root, manifest, rel))
        return results

    def _scan_parallel(self, root, manifest, paths: Iterable[str], stop_event) -> list:
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="coreguard-scan") as pool:
            futures = []
            for rel in paths:
                if _is_stopped(stop_event):
                    for fut in futures:
                        fut.cancel()
                    raise ScanCancelled("Scan cancelled")
                futures.append(pool.submit(self._check_quietly, root, manifest, rel))
            results = []
            for fut in futures:
                if _is_stopped(stop_event):
                    for rest in futures:
                        rest.cancel()
                    raise ScanCancelled("Scan cancelled")
                results.append(fut.result())
        return results
