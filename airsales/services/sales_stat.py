"""
Process-wide sales statistics.

Revenue and clients served are guarded by separate locks. A reader can see
revenue already updated while the client count is not, so the pair is only
consistent once no booking is in flight. Each sale updates revenue first,
then the count.
"""

import threading
from typing import NamedTuple


class SalesSnapshot(NamedTuple):
    total_revenue: int
    total_clients_served: int


class SalesStat:
    def __init__(self):
        self._total_revenue = 0
        self._total_clients_served = 0
        self._revenue_lock = threading.Lock()
        self._clients_lock = threading.Lock()

    @property
    def total_revenue(self) -> int:
        with self._revenue_lock:
            return self._total_revenue

    @total_revenue.setter
    def total_revenue(self, value: int):
        with self._revenue_lock:
            self._total_revenue = value

    @property
    def total_clients_served(self) -> int:
        with self._clients_lock:
            return self._total_clients_served

    @total_clients_served.setter
    def total_clients_served(self, value: int):
        with self._clients_lock:
            self._total_clients_served = value

    def record_sale(self, cost: int) -> None:
        """Add one served client paying `cost`."""
        with self._revenue_lock:
            self._total_revenue += cost
        with self._clients_lock:
            self._total_clients_served += 1

    def snapshot(self) -> SalesSnapshot:
        return SalesSnapshot(self.total_revenue, self.total_clients_served)

    def __str__(self):
        return f"total_clients_served={self.total_clients_served}, total_revenue={self.total_revenue}"
