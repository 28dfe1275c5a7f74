"""
CoreGuard - Remote file source.

Fetches the canonical copy of a release file from the upstream source
control export for that release tag.
"""

import logging
from typing import Optional
from urllib.parse import quote

import requests

from coreguard.core.errors import OperationTimeout, RemoteUnavailable

logger = logging.getLogger(__name__)

DEFAULT_REMOTE_URL_TEMPLATE = "https://core.svn.wordpress.org/tags/{release}/{path}"
DEFAULT_TIMEOUT_SECONDS = 15.0


class SvnFileSource:
    """HTTP GET of {release}/{path} against a release-tagged URL template."""

    def __init__(
        self,
        url_template: str = DEFAULT_REMOTE_URL_TEMPLATE,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        if "{release}" not in url_template or "{path}" not in url_template:
            raise ValueError("Remote URL template must contain {release} and {path}")
        self.url_template = url_template
        self.timeout = timeout
        self.session = session or requests.Session()

    def url_for(self, release_id: str, relative_path: str) -> str:
        return self.url_template.format(
            release=quote(release_id, safe=""),
            path=quote(relative_path, safe="/"),
        )

    def fetch_remote_file(self, release_id: str, relative_path: str) -> bytes:
        url = self.url_for(release_id, relative_path)
        logger.debug("Fetching %s", url)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.Timeout as e:
            raise OperationTimeout(f"Timed out after {self.timeout}s fetching {url}") from e
        except requests.RequestException as e:
            raise RemoteUnavailable(f"Could not connect to upstream source: {e}") from e
        return response.content
