"""
CoreGuard - Manifest store.

Caches the expected-file manifest per release with a fixed TTL and
coalesces concurrent cache misses into a single download.
"""

import logging
import threading
from typing import Optional, Protocol

from coreguard.core.cache import TTLCache, manifest_cache_key
from coreguard.core.errors import CoreGuardError, ManifestUnavailable
from coreguard.core.models import Manifest, ManifestEntry

logger = logging.getLogger(__name__)

MANIFEST_TTL_SECONDS = 60 * 60 * 4


class ManifestSource(Protocol):
    def download_manifest(self, release_id: str) -> list[ManifestEntry]:
        ...


class _Flight:
    """One in-progress build that waiting callers share."""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.manifest: Optional[Manifest] = None
        self.error: Optional[BaseException] = None


class ManifestStore:
    """
    get() returns the cached manifest of a release or builds it once.

    A failed build leaves the previous cache entry as it was; the cache only
    ever receives a complete manifest.
    """

    def __init__(
        self,
        source: ManifestSource,
        cache: TTLCache,
        ttl_seconds: float = MANIFEST_TTL_SECONDS,
    ) -> None:
        self.source = source
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self._flights: dict[str, _Flight] = {}
        self._lock = threading.Lock()

    def _cached(self, release_id: str) -> Optional[Manifest]:
        raw = self.cache.get(manifest_cache_key(release_id))
        if raw is None:
            return None
        if isinstance(raw, Manifest):
            return raw
        try:
            return Manifest.from_list(release_id, raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding corrupt cached manifest for %s: %s", release_id, e)
            return None

    def has_cached(self, release_id: str) -> bool:
        return self.cache.contains(manifest_cache_key(release_id))

    def invalidate(self, release_id: str) -> None:
        self.cache.delete(manifest_cache_key(release_id))
        logger.debug("Manifest cache invalidated for %s", release_id)

    def refresh(self, release_id: str) -> Manifest:
        """Rebuild the manifest; the old entry stays cached until the new one is ready."""
        return self.get(release_id, force=True)

    def get(self, release_id: str, force: bool = False) -> Manifest:
        if not release_id:
            raise ValueError("release_id must not be empty")
        if not force:
            manifest = self._cached(release_id)
            if manifest is not None:
                return manifest

        with self._lock:
            flight = self._flights.get(release_id)
            leader = flight is None
            if leader:
                flight = _Flight()
                self._flights[release_id] = flight

        if not leader:
            flight.done.wait()
            if flight.error is not None:
                raise flight.error
            return flight.manifest

        try:
            # Another flight may have filled the cache while we waited for the lock.
            manifest = None if force else self._cached(release_id)
            if manifest is None:
                manifest = self._build(release_id)
            flight.manifest = manifest
            return manifest
        except BaseException as e:
            flight.error = e
            raise
        finally:
            with self._lock:
                self._flights.pop(release_id, None)
            flight.done.set()

    def _build(self, release_id: str) -> Manifest:
        try:
            entries = self.source.download_manifest(release_id)
        except CoreGuardError:
            raise
        except Exception as e:
            raise ManifestUnavailable(f"Could not build core list for {release_id}: {e}") from e
        try:
            manifest = Manifest(release_id, entries)
        except ValueError as e:
            raise ManifestUnavailable(f"Manifest for {release_id} is invalid: {e}") from e
        self.cache.set(manifest_cache_key(release_id), manifest.to_list(), self.ttl_seconds)
        logger.info("Manifest for %s cached (%d files)", release_id, len(manifest))
        return manifest
