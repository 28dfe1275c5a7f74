"""
CoreGuard - Tree walker.

Recursively enumerates files under an installation root and yields their
'/'-separated paths relative to the root, minus excluded paths.
"""

import logging
import os
from pathlib import Path
from typing import Iterator, Optional, Sequence, Union

from coreguard.core.exclusions import DEFAULT_EXCLUDED_PATTERNS, is_excluded
from coreguard.core.paths import is_under_root

logger = logging.getLogger(__name__)


class TreeWalker:
    """
    Walks a directory tree lazily. Each call to walk() is a fresh traversal.

    Unreadable entries are logged and skipped. Symlinks are followed only
    while they resolve inside the root, and a directory already on the
    current descent stack is not entered again. Exclusion patterns are
    matched against the relative path with a leading "/", so "/." also
    drops dotfiles at the root.
    """

    def __init__(self, excluded_patterns: Optional[Sequence[str]] = None) -> None:
        self.excluded_patterns = tuple(
            DEFAULT_EXCLUDED_PATTERNS if excluded_patterns is None else excluded_patterns
        )

    def walk(self, root_dir: Union[str, Path]) -> Iterator[str]:
        root = Path(root_dir).resolve()
        if not root.is_dir():
            logger.warning("Not a directory: %s", root)
            return
        try:
            st = root.stat()
        except OSError as e:
            logger.warning("Skipping %s: %s", root, e)
            return
        yield from self._walk_dir(str(root), "", str(root), {(st.st_dev, st.st_ino)})

    def _walk_dir(
        self, abs_dir: str, rel_dir: str, root_real: str, stack: set[tuple[int, int]]
    ) -> Iterator[str]:
        try:
            with os.scandir(abs_dir) as it:
                entries = list(it)
        except OSError as e:
            logger.warning("Skipping directory %s: %s", abs_dir, e)
            return

        for entry in entries:
            rel = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            try:
                is_dir = entry.is_dir(follow_symlinks=True)
                is_file = not is_dir and entry.is_file(follow_symlinks=True)
            except OSError as e:
                logger.warning("Skipping %s: %s", entry.path, e)
                continue

            if (is_dir or is_file) and entry.is_symlink():
                target = os.path.realpath(entry.path)
                if not is_under_root(target, root_real):
                    logger.warning("Skipping %s: resolves outside the root (%s)", entry.path, target)
                    continue

            if is_dir:
                try:
                    st = entry.stat(follow_symlinks=True)
                except OSError as e:
                    logger.warning("Skipping directory %s: %s", entry.path, e)
                    continue
                key = (st.st_dev, st.st_ino)
                if key in stack:
                    logger.debug("Directory cycle at %s; not descending", entry.path)
                    continue
                stack.add(key)
                try:
                    yield from self._walk_dir(entry.path, rel, root_real, stack)
                finally:
                    stack.discard(key)
            elif is_file:
                if is_excluded("/" + rel, self.excluded_patterns):
                    continue
                yield rel
