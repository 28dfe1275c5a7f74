"""
CoreGuard - Manifest source.

Downloads the authoritative file-size tree of a release over HTTP.
"""

import logging
from typing import Any, Optional

import requests

from coreguard.core.errors import ManifestUnavailable, OperationTimeout
from coreguard.core.models import ManifestEntry

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


def parse_manifest_payload(payload: Any) -> list[ManifestEntry]:
    """
    Turn a decoded JSON payload into manifest entries.

    Accepts a list of {"file"|"path": str, "size": int} objects, or an object
    wrapping that list under "files".
    """
    if isinstance(payload, dict):
        payload = payload.get("files")
    if not isinstance(payload, list):
        raise ManifestUnavailable("Manifest payload is not a list of files")
    entries: list[ManifestEntry] = []
    for item in payload:
        if not isinstance(item, dict):
            raise ManifestUnavailable(f"Malformed manifest item: {item!r}")
        path = item.get("file", item.get("path"))
        size = item.get("size")
        if not isinstance(path, str) or isinstance(size, bool) or not isinstance(size, (int, str)):
            raise ManifestUnavailable(f"Malformed manifest item: {item!r}")
        try:
            entries.append(ManifestEntry(path=path, size=int(size)))
        except ValueError as e:
            raise ManifestUnavailable(f"Malformed size for {path}: {size!r}") from e
    return entries


class HttpManifestSource:
    """Fetches a release manifest from a URL template containing {release}."""

    def __init__(
        self,
        url_template: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        if "{release}" not in url_template:
            raise ValueError("Manifest URL template must contain {release}")
        self.url_template = url_template
        self.timeout = timeout
        self.session = session or requests.Session()

    def url_for(self, release_id: str) -> str:
        return self.url_template.format(release=release_id)

    def download_manifest(self, release_id: str) -> list[ManifestEntry]:
        url = self.url_for(release_id)
        logger.info("Downloading core files list for release %s", release_id)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.Timeout as e:
            raise OperationTimeout(f"Manifest download timed out after {self.timeout}s: {url}") from e
        except requests.RequestException as e:
            raise ManifestUnavailable(f"Could not download manifest from {url}: {e}") from e
        except ValueError as e:
            raise ManifestUnavailable(f"Manifest at {url} is not valid JSON") from e
        entries = parse_manifest_payload(payload)
        logger.debug("Manifest for %s has %d entries", release_id, len(entries))
        return entries
