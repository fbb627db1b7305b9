"""
Uniform sampling of the record stream.

Bounds the size of a comparison run without biasing toward any key.
"""

import logging
import random
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


class ReservoirSampler:
    """Online reservoir sampler (Algorithm R)"""

    def __init__(self, bound: int, rng: Optional[random.Random] = None):
        """
        Initialize the sampler

        Args:
            bound: Maximum number of records to keep
            rng: Random source, seeded by the caller for reproducible runs
        """
        if bound < 0:
            raise ValueError(f"Sample bound must be non-negative, got {bound}")
        self.bound = bound
        self.rng = rng or random.Random()
        self.seen = 0
        self._reservoir: List[str] = []

    def offer(self, record: str):
        """Consider one record for the sample."""
        self.seen += 1
        if len(self._reservoir) < self.bound:
            self._reservoir.append(record)
            return

        slot = self.rng.randrange(self.seen)
        if slot < self.bound:
            self._reservoir[slot] = record

    def extend(self, records: Iterable[str]):
        for record in records:
            self.offer(record)

    @property
    def sample(self) -> List[str]:
        return list(self._reservoir)

    def __len__(self):
        return len(self._reservoir)


def reservoir_sample(records: Iterable[str], bound: int,
                     rng: Optional[random.Random] = None) -> List[str]:
    """
    Take a uniform sample of at most `bound` records in a single pass.

    When the input holds no more than `bound` records, the whole input is
    returned in its original order.
    """
    sampler = ReservoirSampler(bound, rng)
    sampler.extend(records)
    logger.info(f"Sampled {len(sampler)} of {sampler.seen} records (bound {bound})")
    return sampler.sample
