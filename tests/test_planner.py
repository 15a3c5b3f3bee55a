"""Tests for chunk planning."""

import math

import pytest

from vupload.client.planner import count_parts, plan_parts


@pytest.mark.parametrize(
    "total,chunk",
    [
        (1, 1),
        (1, 5),
        (10, 3),
        (15, 5),
        (16, 5),
        (5 * 1024 * 1024, 5 * 1024 * 1024),
        (5 * 1024 * 1024 + 1, 5 * 1024 * 1024),
        (123_456_789, 4_000_000),
    ],
)
def test_plan_covers_file_contiguously(total, chunk):
    parts = plan_parts(total, chunk)

    assert len(parts) == math.ceil(total / chunk)
    assert parts[0].offset_start == 0
    assert parts[-1].offset_end == total
    for prev, nxt in zip(parts, parts[1:]):
        assert prev.offset_end == nxt.offset_start
    assert sum(p.size_bytes for p in parts) == total
    assert [p.index for p in parts] == list(range(len(parts)))
    assert all(0 < p.size_bytes <= chunk for p in parts)


def test_concrete_twelve_million_in_five_million_chunks():
    parts = plan_parts(12_000_000, 5_000_000)

    assert [p.size_bytes for p in parts] == [5_000_000, 5_000_000, 2_000_000]
    assert [(p.offset_start, p.offset_end) for p in parts] == [
        (0, 5_000_000),
        (5_000_000, 10_000_000),
        (10_000_000, 12_000_000),
    ]
    assert [p.part_number for p in parts] == [1, 2, 3]


def test_empty_file_yields_single_empty_part():
    parts = plan_parts(0, 5_000_000)

    assert len(parts) == 1
    assert parts[0].index == 0
    assert parts[0].offset_start == parts[0].offset_end == 0
    assert parts[0].size_bytes == 0


def test_plan_is_deterministic():
    assert plan_parts(1_000_003, 1000) == plan_parts(1_000_003, 1000)


@pytest.mark.parametrize("chunk", [0, -1])
def test_non_positive_chunk_size_rejected(chunk):
    with pytest.raises(ValueError):
        plan_parts(100, chunk)


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        count_parts(-1, 10)


def test_count_parts_never_zero():
    assert count_parts(0, 1) == 1
    assert count_parts(9, 10) == 1
    assert count_parts(11, 10) == 2
