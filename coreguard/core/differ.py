"""
CoreGuard - Line diff.

Produces EQUAL / INSERT / DELETE segments of the candidate text relative to
the original text.
"""

import difflib
from typing import Union

from coreguard.core.models import DiffOp, DiffSegment

Text = Union[str, bytes]


def split_lines(data: Text) -> list[str]:
    """Decode (UTF-8, lossy) and split into lines without terminators."""
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    data = data.replace("\r\n", "\n").replace("\r", "\n")
    if not data:
        return []
    lines = data.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def compute_diff(original: Text, candidate: Text) -> list[DiffSegment]:
    """Diff two texts line by line; a replaced block becomes DELETE then INSERT."""
    old = split_lines(original)
    new = split_lines(candidate)
    matcher = difflib.SequenceMatcher(None, old, new, autojunk=False)
    segments: list[DiffSegment] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            segments.append(DiffSegment(DiffOp.EQUAL, tuple(old[i1:i2])))
            continue
        if tag in ("delete", "replace"):
            segments.append(DiffSegment(DiffOp.DELETE, tuple(old[i1:i2])))
        if tag in ("insert", "replace"):
            segments.append(DiffSegment(DiffOp.INSERT, tuple(new[j1:j2])))
    return segments
