"""Tests for the line diff."""

from coreguard.core.differ import compute_diff, split_lines
from coreguard.core.models import DiffOp


def _ops(segments):
    return [(s.op, list(s.lines)) for s in segments]


def test_identical_texts_are_one_equal_segment() -> None:
    assert _ops(compute_diff("a\nb\n", "a\nb\n")) == [(DiffOp.EQUAL, ["a", "b"])]


def test_inserted_lines() -> None:
    assert _ops(compute_diff("a\nc\n", "a\nb\nc\n")) == [
        (DiffOp.EQUAL, ["a"]),
        (DiffOp.INSERT, ["b"]),
        (DiffOp.EQUAL, ["c"]),
    ]


def test_deleted_lines() -> None:
    assert _ops(compute_diff("a\nb\nc\n", "a\nc\n")) == [
        (DiffOp.EQUAL, ["a"]),
        (DiffOp.DELETE, ["b"]),
        (DiffOp.EQUAL, ["c"]),
    ]


def test_replaced_block_is_delete_then_insert() -> None:
    assert _ops(compute_diff("a\nold\nc\n", "a\nnew\nc\n")) == [
        (DiffOp.EQUAL, ["a"]),
        (DiffOp.DELETE, ["old"]),
        (DiffOp.INSERT, ["new"]),
        (DiffOp.EQUAL, ["c"]),
    ]


def test_line_endings_and_bytes_are_normalized() -> None:
    assert _ops(compute_diff(b"a\r\nb\r\n", "a\nb")) == [(DiffOp.EQUAL, ["a", "b"])]


def test_invalid_utf8_does_not_fail() -> None:
    assert split_lines(b"ok\n\xff\xfe\n") == ["ok", "\ufffd\ufffd"]


def test_empty_inputs() -> None:
    assert compute_diff("", "") == []
    assert _ops(compute_diff("", "x\n")) == [(DiffOp.INSERT, ["x"])]


def test_segments_preserve_candidate_order() -> None:
    original = "1\n2\n3\n4\n"
    candidate = "0\n1\n3\n4\n5\n"
    rebuilt = [line for s in compute_diff(original, candidate) if s.op is not DiffOp.DELETE for line in s.lines]
    restored = [line for s in compute_diff(original, candidate) if s.op is not DiffOp.INSERT for line in s.lines]
    assert rebuilt == ["0", "1", "3", "4", "5"]
    assert restored == ["1", "2", "3", "4"]
