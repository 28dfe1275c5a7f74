"""
CoreGuard - Error taxonomy.

Every failure of the engine is raised as a CoreGuardError subclass carrying
a stable code; the service layer turns them into error envelopes.
"""


class CoreGuardError(Exception):
    """Base class for all engine errors."""

    code = "error"


class ConfigError(CoreGuardError, ValueError):
    """Raised when configuration is invalid."""

    code = "config_invalid"


class ManifestUnavailable(CoreGuardError):
    """Manifest download failed and no cached copy is usable."""

    code = "manifest_unavailable"


class PathNotInManifest(CoreGuardError):
    """Requested path is not part of the release manifest."""

    code = "path_not_in_manifest"


class RemoteUnavailable(CoreGuardError):
    """Upstream file source could not be reached or refused the request."""

    code = "remote_unavailable"


class OperationTimeout(CoreGuardError):
    """A network call exceeded its timeout."""

    code = "timeout"


class InvalidPath(CoreGuardError, ValueError):
    """Path is empty, absolute, or resolves outside the installation root."""

    code = "invalid_path"


class FileReadError(CoreGuardError):
    """Local file could not be read (permission denied, deleted mid-scan)."""

    code = "file_read_error"


class ScanCancelled(CoreGuardError):
    """Scan was aborted between file visits; partial results are discarded."""

    code = "scan_cancelled"
