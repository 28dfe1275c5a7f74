"""
CoreGuard - Shared data models (manifest, findings, diffs, scan steps).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from coreguard.core.errors import InvalidPath


class ErrorCode(str, Enum):
    """Finding error codes (wire values of the core scanner)."""

    UNEXPECTED_FILE = "0010"
    MODIFIED_FILE = "0020"


class Severity(str, Enum):
    """Alert severity levels."""

    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


ERROR_MESSAGES = {
    ErrorCode.UNEXPECTED_FILE: "Unexpected file",
    ErrorCode.MODIFIED_FILE: "Modified file",
}

ERROR_SEVERITY = {
    ErrorCode.UNEXPECTED_FILE: Severity.WARNING,
    ErrorCode.MODIFIED_FILE: Severity.CRITICAL,
}


@dataclass(frozen=True)
class ManifestEntry:
    """Expected file of a release: path relative to the install root and its size."""

    path: str
    size: int


def _check_entry_path(path: str) -> None:
    if not path or path.startswith("/") or "\\" in path:
        raise InvalidPath(f"Invalid manifest path: {path!r}")
    if ".." in path.split("/"):
        raise InvalidPath(f"Manifest path escapes root: {path!r}")


class Manifest:
    """
    Size-indexed table of expected files for one release.

    Built in one go and never mutated afterwards; a rebuild produces a new
    Manifest instance.
    """

    def __init__(self, release_id: str, entries: Iterable[ManifestEntry]) -> None:
        self.release_id = release_id
        sizes: dict[str, int] = {}
        for entry in entries:
            _check_entry_path(entry.path)
            if entry.path in sizes:
                raise ValueError(f"Duplicate manifest path: {entry.path}")
            if entry.size < 0:
                raise ValueError(f"Negative size for {entry.path}: {entry.size}")
            sizes[entry.path] = int(entry.size)
        self._sizes = sizes

    def __contains__(self, path: object) -> bool:
        return path in self._sizes

    def __len__(self) -> int:
        return len(self._sizes)

    def __iter__(self):
        return iter(self._sizes)

    def size_of(self, path: str) -> Optional[int]:
        """Expected size in bytes, or None when the path is not part of the release."""
        return self._sizes.get(path)

    def to_list(self) -> list[dict[str, Any]]:
        return [{"file": p, "size": s} for p, s in self._sizes.items()]

    @classmethod
    def from_list(cls, release_id: str, items: list[dict[str, Any]]) -> "Manifest":
        return cls(release_id, (ManifestEntry(str(i["file"]), int(i["size"])) for i in items))


@dataclass(frozen=True)
class Finding:
    """One anomaly detected during a scan."""

    scanner_kind: str
    relative_path: str
    observed_size: int
    error_code: ErrorCode
    message: str

    @property
    def severity(self) -> Severity:
        return ERROR_SEVERITY[self.error_code]

    @property
    def is_diffable(self) -> bool:
        """Only modified release files have an upstream copy worth comparing."""
        return self.error_code is ErrorCode.MODIFIED_FILE

    def to_dict(self) -> dict[str, Any]:
        return {
            "scanner": self.scanner_kind,
            "file": self.relative_path,
            "size": self.observed_size,
            "error_code": self.error_code.value,
            "message": self.message,
            "severity": self.severity.value,
            "diffable": self.is_diffable,
        }


@dataclass
class ScanRun:
    """Result set of one full scan pass."""

    findings: list[Finding] = field(default_factory=list)
    total_scanned: int = 0
    skipped: list[str] = field(default_factory=list)

    def count(self, code: ErrorCode) -> int:
        return sum(1 for f in self.findings if f.error_code is code)

    def to_dict(self) -> dict[str, Any]:
        return {
            "findings": [f.to_dict() for f in self.findings],
            "total_scanned": self.total_scanned,
            "skipped": list(self.skipped),
        }


class DiffOp(str, Enum):
    """Kind of a diff segment."""

    EQUAL = "EQUAL"
    INSERT = "INSERT"
    DELETE = "DELETE"


@dataclass(frozen=True)
class DiffSegment:
    """Run of consecutive lines sharing one diff kind."""

    op: DiffOp
    lines: tuple[str, ...]


@dataclass
class DiffResult:
    """Line diff of the upstream copy (original) against the local copy (candidate)."""

    release_id: str
    path: str
    segments: list[DiffSegment] = field(default_factory=list)

    @property
    def inserted_count(self) -> int:
        return sum(len(s.lines) for s in self.segments if s.op is DiffOp.INSERT)

    @property
    def deleted_count(self) -> int:
        return sum(len(s.lines) for s in self.segments if s.op is DiffOp.DELETE)

    @property
    def has_changes(self) -> bool:
        return any(s.op is not DiffOp.EQUAL for s in self.segments)


class StepKind(str, Enum):
    """Scan plan step variants."""

    UPDATE_MANIFEST = "UPDATE_MANIFEST"
    CORE_SCAN = "CORE_SCAN"


@dataclass(frozen=True)
class ScanStep:
    """One entry of the scan plan: what to run and the log line announcing it."""

    kind: StepKind
    log: str
    params: dict[str, Any] = field(default_factory=dict)
