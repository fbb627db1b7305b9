"""Report lines for aggregation results."""

from collections import Counter
from typing import Dict, List

from .strategies import GROUPED, PER_KEY


def format_per_key(result: Counter) -> List[str]:
    """One '<location> <subject> <count>' line per key, in result order"""
    return [f"{key.location} {key.subject} {count}" for key, count in result.items()]


def format_grouped(result: Counter) -> List[str]:
    """
    One line per location listing its subjects with their counts.

    Example: 'US 042 3 190 1'
    """
    by_location: Dict[str, List[str]] = {}
    for key, count in result.items():
        by_location.setdefault(key.location, []).append(f"{key.subject} {count}")
    return [f"{location} {' '.join(pairs)}" for location, pairs in by_location.items()]


def format_result(result: Counter, strategy: str) -> List[str]:
    if strategy == PER_KEY:
        return format_per_key(result)
    if strategy == GROUPED:
        return format_grouped(result)
    raise ValueError(f"Unknown strategy '{strategy}'")
