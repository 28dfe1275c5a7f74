"""
CoreGuard - Path normalization and root confinement.
"""

import os
from pathlib import Path, PurePosixPath
from typing import Union

from coreguard.core.errors import InvalidPath


def normalize_relative_path(raw: str) -> str:
    """
    Normalize a caller-supplied relative path to '/'-separated form.

    Raises InvalidPath for empty, absolute, NUL-containing or '..' paths.
    """
    if raw is None:
        raise InvalidPath("Path is required")
    path = str(raw).strip().replace("\\", "/")
    if not path or "\x00" in path:
        raise InvalidPath("Path is empty or malformed")
    if path.startswith("/") or (len(path) > 1 and path[1] == ":"):
        raise InvalidPath(f"Path must be relative to the installation root: {raw!r}")
    while path.startswith("./"):
        path = path[2:]
    parts = [p for p in PurePosixPath(path).parts if p != "."]
    if not parts or ".." in parts:
        raise InvalidPath(f"Path escapes the installation root: {raw!r}")
    return "/".join(parts)


def is_under_root(target_abs: str, root_abs: str) -> bool:
    """Check if target is inside root after normalization."""
    t = os.path.normcase(os.path.normpath(target_abs))
    r = os.path.normcase(os.path.normpath(root_abs))
    if not r.endswith(os.sep):
        r += os.sep
    return t.startswith(r) or t == r.rstrip(os.sep)


def resolve_under_root(root: Union[str, Path], relative_path: str) -> Path:
    """
    Join relative_path onto root, resolve symlinks, and verify the result
    stays inside root. Returns the canonical absolute path.
    """
    rel = normalize_relative_path(relative_path)
    root_real = os.path.realpath(str(root))
    target = os.path.realpath(os.path.join(root_real, *rel.split("/")))
    if not is_under_root(target, root_real) or target == root_real:
        raise InvalidPath(f"Path resolves outside the installation root: {relative_path!r}")
    return Path(target)
