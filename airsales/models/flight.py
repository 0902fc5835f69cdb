"""
Flight with two fare classes and a seat counter for each.

CONCURRENCY STRATEGY: one lock per flight
=========================================

Problem:
  Several workers try to sell the last seat of a flight at once.
  Both read first_class_seats=1, both decrement, the counter goes negative.

Solution:
  Every read and write of the two counters happens inside a single
  lock owned by the flight. The sold-out check, the fare class choice and
  the decrement form one critical section, so no booking observes another
  booking half done.

  A lock per fare class would not change what callers can observe and is
  not needed at this scale.

  Which class a client gets is decided by a FarePolicy; the flight only
  tells the policy which classes still have seats.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from airsales.services.interfaces.fare_policy import FarePolicy


class FareClass(str, Enum):
    FIRST = "first"
    ECONOMY = "economy"
    NONE = "none"


@dataclass(frozen=True)
class BookingResult:
    booked: bool
    cost: int
    fare_class: FareClass


NOT_BOOKED = BookingResult(booked=False, cost=0, fare_class=FareClass.NONE)

FIRST_CLASS_COST = 800
ECONOMY_CLASS_COST = 300


class Flight:
    def __init__(
        self,
        policy: "FarePolicy",
        first_class_seats: int = 12,
        economy_class_seats: int = 120,
        first_class_cost: int = FIRST_CLASS_COST,
        economy_class_cost: int = ECONOMY_CLASS_COST,
        number: int = 1,
    ):
        if first_class_seats < 0 or economy_class_seats < 0:
            raise ValueError("Seat capacities must be non-negative")
        self.number = number
        self.policy = policy
        self.first_class_cost = first_class_cost
        self.economy_class_cost = economy_class_cost
        self._first_class_seats = first_class_seats
        self._economy_class_seats = economy_class_seats
        self._lock = threading.Lock()

    @property
    def first_class_seats(self) -> int:
        with self._lock:
            return self._first_class_seats

    @property
    def economy_class_seats(self) -> int:
        with self._lock:
            return self._economy_class_seats

    def try_book_seat(self) -> BookingResult:
        """
        Sell one seat if either class has room.
        Returns NOT_BOOKED when both classes are full.
        """
        with self._lock:
            first_available = self._first_class_seats > 0
            economy_available = self._economy_class_seats > 0

            if not first_available and not economy_available:
                return NOT_BOOKED

            fare_class = self.policy.choose(first_available, economy_available)

            if fare_class is FareClass.FIRST:
                self._first_class_seats -= 1
                return BookingResult(True, self.first_class_cost, FareClass.FIRST)

            self._economy_class_seats -= 1
            return BookingResult(True, self.economy_class_cost, FareClass.ECONOMY)

    def is_sold_out(self) -> bool:
        with self._lock:
            return self._first_class_seats == 0 and self._economy_class_seats == 0

    def __repr__(self) -> str:
        return (
            f"<Flight(number={self.number}, first={self._first_class_seats}, "
            f"economy={self._economy_class_seats})>"
        )
