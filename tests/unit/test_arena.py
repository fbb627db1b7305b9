"""
Unit tests for SubjectArena and ArenaPool
"""

import pytest

from subjects_by_location.errors import ArenaOverflowError
from subjects_by_location.worker.arena import ArenaPool, SubjectArena


class TestSubjectArena:

    def test_holds_subjects_in_order(self):
        arena = SubjectArena("US", capacity=5)
        for subject in ["042", "190", "042"]:
            arena.append(subject)

        assert list(arena) == ["042", "190", "042"]
        assert len(arena) == 3

    def test_overflow_raises_with_group_and_capacity(self):
        arena = SubjectArena("US", capacity=2)
        arena.append("a")
        arena.append("b")

        with pytest.raises(ArenaOverflowError) as excinfo:
            arena.append("c")

        assert excinfo.value.group == "US"
        assert excinfo.value.capacity == 2
        assert len(arena) == 2

    def test_release_keeps_high_water_mark(self):
        arena = SubjectArena("FR", capacity=10)
        for _ in range(4):
            arena.append("x")
        arena.release()

        assert len(arena) == 0
        assert arena.high_water_mark == 4

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            SubjectArena("US", capacity=0)


class TestArenaPool:

    def test_one_arena_per_group(self):
        pool = ArenaPool(capacity=10)

        assert pool.arena_for("US") is pool.arena_for("US")
        assert pool.arena_for("US") is not pool.arena_for("FR")

    def test_largest_group(self):
        pool = ArenaPool(capacity=10)
        for _ in range(3):
            pool.arena_for("US").append("x")
        pool.arena_for("FR").append("y")

        assert pool.largest_group == 3
        assert pool.largest_group_name == "US"

    def test_empty_pool(self):
        pool = ArenaPool(capacity=10)

        assert pool.largest_group == 0
        assert pool.largest_group_name is None
