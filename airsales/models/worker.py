"""
Sales worker identity.
A worker is bound to one thread for the run and stops when the shared
cancellation event is set.
"""

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class Worker:
    id: int
    cancellation: threading.Event

    @property
    def cancelled(self) -> bool:
        return self.cancellation.is_set()

    def __str__(self):
        return f"Worker #{self.id}"
