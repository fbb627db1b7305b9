"""
Bounded buffer for the subjects of one location group.

The grouped strategy must hold every subject of a location before it can
count any of them. The arena makes that cost explicit: it refuses to grow
past its capacity and remembers how full it got.
"""

from typing import Iterator, List, Optional

from ..errors import ArenaOverflowError


class SubjectArena:
    """Fixed-capacity, append-only store of subject codes for one group"""

    def __init__(self, group: str, capacity: int):
        if capacity <= 0:
            raise ValueError(f"Arena capacity must be positive, got {capacity}")
        self.group = group
        self.capacity = capacity
        self._items: List[str] = []
        self.high_water_mark = 0

    def append(self, subject: str):
        if len(self._items) >= self.capacity:
            raise ArenaOverflowError(self.group, self.capacity)
        self._items.append(subject)
        self.high_water_mark = max(self.high_water_mark, len(self._items))

    def __len__(self):
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def release(self):
        """Drop the buffered subjects; the high-water mark is kept."""
        self._items = []


class ArenaPool:
    """Hands out one arena per group and tracks the largest group seen"""

    def __init__(self, capacity: int):
        self.capacity = capacity
        self.arenas = {}

    def arena_for(self, group: str) -> SubjectArena:
        arena = self.arenas.get(group)
        if arena is None:
            arena = SubjectArena(group, self.capacity)
            self.arenas[group] = arena
        return arena

    @property
    def largest_group(self) -> int:
        return max((a.high_water_mark for a in self.arenas.values()), default=0)

    @property
    def largest_group_name(self) -> Optional[str]:
        if not self.arenas:
            return None
        return max(self.arenas.values(), key=lambda a: a.high_water_mark).group
