"""
CoreGuard - Core integrity verification module.

Provides the manifest store, exclusion filter, tree walker, scan engine,
and remote diff reporting used to verify a release installation.
"""

from coreguard.core.alerts import AlertManager
from coreguard.core.cache import JsonFileTTLCache, MemoryTTLCache, TTLCache
from coreguard.core.diff_renderer import DiffRenderer
from coreguard.core.diff_reporter import DiffReporter
from coreguard.core.exclusions import DEFAULT_EXCLUDED_PATTERNS, is_excluded
from coreguard.core.manifest_source import HttpManifestSource
from coreguard.core.manifest_store import ManifestStore
from coreguard.core.remote import SvnFileSource
from coreguard.core.scan_engine import ScanEngine
from coreguard.core.service import IntegrityService, build_service
from coreguard.core.walker import TreeWalker

__all__ = [
    "AlertManager",
    "DEFAULT_EXCLUDED_PATTERNS",
    "DiffRenderer",
    "DiffReporter",
    "HttpManifestSource",
    "IntegrityService",
    "JsonFileTTLCache",
    "ManifestStore",
    "MemoryTTLCache",
    "ScanEngine",
    "SvnFileSource",
    "TTLCache",
    "TreeWalker",
    "build_service",
    "is_excluded",
]
