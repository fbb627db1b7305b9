"""
Synthetic GDELT-style event files for benchmarks and tests.

Locations follow a skewed distribution so one location dominates the feed,
which is the case where grouping by location hurts.
"""

import logging
import random
from typing import Iterable, Iterator, Optional

from .records import LOCATION_FIELD, MIN_FIELDS, SUBJECT_FIELD

logger = logging.getLogger(__name__)

NUM_FIELDS = 57
LOCATIONS = ["US", "UK", "FR", "GM", "CH", "RS", "IN", "BR", "NI", "AS"]
SUBJECTS = [f"{code:03d}" for code in (10, 11, 20, 36, 40, 42, 43, 51, 57, 112, 173, 190)]


def make_record(location: str, subject: str, event_id: int = 0) -> str:
    """Build one tab-delimited record with the given location and subject codes."""
    fields = [f"f{i}" for i in range(NUM_FIELDS)]
    fields[0] = str(event_id)
    fields[SUBJECT_FIELD] = subject
    fields[LOCATION_FIELD] = location
    return "\t".join(fields)


def make_malformed_record(event_id: int = 0) -> str:
    """A record too short to hold a location field."""
    return "\t".join([str(event_id)] + ["x"] * (MIN_FIELDS // 4))


def generate_records(count: int, hot_share: float = 0.5, malformed_share: float = 0.05,
                     invalid_location_share: float = 0.05,
                     seed: Optional[int] = None) -> Iterator[str]:
    """
    Yield `count` synthetic records.

    Args:
        count: Number of records
        hot_share: Fraction of records assigned to the first location
        malformed_share: Fraction of records with too few fields
        invalid_location_share: Fraction of records whose location fails validation
        seed: Random seed for reproducible files
    """
    rng = random.Random(seed)
    for event_id in range(count):
        roll = rng.random()
        if roll < malformed_share:
            yield make_malformed_record(event_id)
            continue
        if roll < malformed_share + invalid_location_share:
            location = rng.choice(["USA", "-X", "NA"])
        elif rng.random() < hot_share:
            location = LOCATIONS[0]
        else:
            location = rng.choice(LOCATIONS[1:])
        yield make_record(location, rng.choice(SUBJECTS), event_id)


def write_records(path: str, records: Iterable[str]) -> int:
    """Write records one per line; returns the number written."""
    written = 0
    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            f.write(record + "\n")
            written += 1
    logger.info(f"Generated {written} records in {path}")
    return written
