"""
Unit tests for reservoir sampling
"""

import random
from collections import Counter

import pytest

from subjects_by_location.sampler import ReservoirSampler, reservoir_sample


class TestReservoirSampleSize:
    """Tests for sample size bounds"""

    def test_input_smaller_than_bound_is_returned_unchanged(self):
        records = [f"r{i}" for i in range(10)]

        assert reservoir_sample(records, 100) == records

    def test_input_equal_to_bound_is_returned_unchanged(self):
        records = [f"r{i}" for i in range(10)]

        assert reservoir_sample(iter(records), 10) == records

    def test_rerun_on_small_input_is_stable(self):
        records = [f"r{i}" for i in range(5)]

        assert reservoir_sample(records, 10) == reservoir_sample(records, 10)

    def test_large_input_is_capped_at_bound(self):
        sample = reservoir_sample((f"r{i}" for i in range(1000)), 50, random.Random(1))

        assert len(sample) == 50
        assert len(set(sample)) == 50

    def test_zero_bound_yields_empty_sample(self):
        assert reservoir_sample(["a", "b"], 0) == []

    def test_negative_bound_is_rejected(self):
        with pytest.raises(ValueError):
            reservoir_sample(["a"], -1)

    def test_empty_input(self):
        assert reservoir_sample([], 10) == []


class TestReservoirSampler:
    """Tests for the online sampler"""

    def test_counts_records_seen(self):
        sampler = ReservoirSampler(3, random.Random(7))
        sampler.extend(f"r{i}" for i in range(20))

        assert sampler.seen == 20
        assert len(sampler) == 3

    def test_sample_members_come_from_input(self):
        records = {f"r{i}" for i in range(200)}
        sampler = ReservoirSampler(20, random.Random(3))
        sampler.extend(sorted(records))

        assert set(sampler.sample) <= records

    def test_same_seed_gives_same_sample(self):
        records = [f"r{i}" for i in range(500)]

        first = reservoir_sample(records, 25, random.Random(42))
        second = reservoir_sample(records, 25, random.Random(42))

        assert first == second

    def test_selection_is_roughly_uniform(self):
        """Every position should be picked about bound/n of the time"""
        n, bound, trials = 20, 5, 4000
        rng = random.Random(12345)
        hits = Counter()
        for _ in range(trials):
            hits.update(reservoir_sample(range(n), bound, rng))

        expected = trials * bound / n
        for position in range(n):
            assert abs(hits[position] - expected) < expected * 0.2
