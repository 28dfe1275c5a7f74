"""
CoreGuard - Exclusion filter.

Plain substring matching: a path is skipped when it contains any pattern
anywhere. Patterns are not globs or regular expressions.
"""

from typing import Iterable

DEFAULT_EXCLUDED_PATTERNS: tuple[str, ...] = (
    "wp-config-sample.php",
    "wp-includes/version.php",
    "wp-content/",
    "wp-config.php",
    "readme.html",
    ".txt",
    "/..",
    "/.",
)


def is_excluded(relative_path: str, excluded_patterns: Iterable[str] = DEFAULT_EXCLUDED_PATTERNS) -> bool:
    """Return True if relative_path contains any of the patterns."""
    return any(pattern and pattern in relative_path for pattern in excluded_patterns)
