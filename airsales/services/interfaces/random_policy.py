"""
Concrete fare class policies.
"""

import random
import threading
from typing import Optional

from airsales.services.interfaces.fare_policy import FarePolicy


class RandomPreferencePolicy(FarePolicy):
    """
    Single uniform draw per booking.
    Stands in for customer choice without a demand model.
    """

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)
        # random.Random is not safe to share between threads
        self._lock = threading.Lock()

    def prefer_first(self) -> bool:
        with self._lock:
            return self._random.getrandbits(1) == 1


class FixedPreferencePolicy(FarePolicy):
    """Always prefer the same class; deterministic for tests and demos."""

    def __init__(self, first: bool = True):
        self.first = first

    def prefer_first(self) -> bool:
        return self.first
