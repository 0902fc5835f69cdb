"""
Identifier allocation for clients and workers.
One allocator is owned per kind of record and injected where records are made.
"""

import threading


class IdAllocator:
    """Thread-safe monotonic identifiers, starting at 1."""

    def __init__(self, start: int = 1):
        self._next = start
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value
