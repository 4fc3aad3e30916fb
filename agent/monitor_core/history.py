"""
HistoryLog — bounded, newest-first record of accepted window changes.
"""

from collections import deque

from .constants import HISTORY_CAPACITY


class HistoryLog:
    """Insert at the head; past capacity the tail entry is evicted."""

    def __init__(self, capacity=HISTORY_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries = deque(maxlen=capacity)

    def insert(self, entry):
        self._entries.appendleft(entry)
        return entry

    def clear(self):
        self._entries.clear()

    @property
    def latest(self):
        return self._entries[0] if self._entries else None

    def entries(self):
        """Snapshot list, newest first. Safe to hold while the log changes."""
        return list(self._entries)

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))

    def __getitem__(self, index):
        return self._entries[index]
