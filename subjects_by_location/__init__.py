"""
Subjects by location: event frequency per (location, subject) pair,
computed with two competing MapReduce-style aggregation strategies.
"""

from .records import NA, CompositeKey, ExtractedFields, extract_fields, build_key, composite_key
from .sampler import ReservoirSampler, reservoir_sample
from .strategies import PerKeyCounter, GroupedAggregator, get_strategy, merge_counts

__version__ = "0.1.0"

__all__ = [
    "NA",
    "CompositeKey",
    "ExtractedFields",
    "extract_fields",
    "build_key",
    "composite_key",
    "ReservoirSampler",
    "reservoir_sample",
    "PerKeyCounter",
    "GroupedAggregator",
    "get_strategy",
    "merge_counts",
]
