"""
Tests for the client queue and the worker pool.
"""

import pytest

from airsales.models.client import Client
from airsales.models.flight import FareClass, Flight
from airsales.models.reason import TerminationReason
from airsales.models.worker import Worker
from airsales.services.interfaces.random_policy import FixedPreferencePolicy, RandomPreferencePolicy
from airsales.services.sales_stat import SalesSnapshot, SalesStat
from airsales.services.worker_pool import ClientQueue, WorkerPool, all_sold_out


def make_pool(flights, coordinator, size=1, mirror=None, clients=None):
    return WorkerPool(
        size,
        flights,
        clients or ClientQueue(),
        SalesStat(),
        coordinator,
        mirror=mirror,
        idle_sleep=0.005,
    )


def test_queue_is_fifo():
    clients = ClientQueue()
    clients.put(Client(1))
    clients.put(Client(2))

    assert clients.qsize() == 2
    assert clients.try_get() == Client(1)
    assert clients.try_get() == Client(2)
    assert clients.try_get() is None
    assert clients.empty()


def test_workers_get_unique_ids(seller_coordinator):
    pool = make_pool([Flight(FixedPreferencePolicy())], seller_coordinator, size=5)

    assert [w.id for w in pool.workers] == [1, 2, 3, 4, 5]
    assert all(w.cancellation is seller_coordinator.cancellation for w in pool.workers)


def test_empty_pool_rejected(seller_coordinator):
    with pytest.raises(ValueError):
        make_pool([Flight(FixedPreferencePolicy())], seller_coordinator, size=0)


def test_serve_tries_flights_in_order(seller_coordinator):
    full = Flight(FixedPreferencePolicy(), first_class_seats=0, economy_class_seats=0, number=1)
    open_ = Flight(FixedPreferencePolicy(first=False), first_class_seats=0, economy_class_seats=3, number=2)
    pool = make_pool([full, open_], seller_coordinator)

    result = pool.serve(pool.workers[0], Client(1))

    assert result.fare_class is FareClass.ECONOMY
    assert open_.economy_class_seats == 2
    assert pool.stats.snapshot() == SalesSnapshot(300, 1)


def test_serve_without_capacity_changes_nothing(seller_coordinator):
    pool = make_pool([Flight(FixedPreferencePolicy(), 0, 0)], seller_coordinator)

    assert pool.serve(pool.workers[0], Client(1)) is None
    assert pool.stats.snapshot() == SalesSnapshot(0, 0)


def test_single_seat_sells_then_sold_out(seller_coordinator, channel, mirror):
    """
    One first class seat, one worker, two clients:
    the first client pays 800, the second ends the sale as sold out.
    """
    flight = Flight(RandomPreferencePolicy(seed=5), first_class_seats=1, economy_class_seats=0)
    pool = make_pool([flight], seller_coordinator, mirror=mirror)
    pool.clients.put(Client(1))
    pool.clients.put(Client(2))

    pool.start()

    assert seller_coordinator.wait(5.0) is TerminationReason.SOLD_OUT
    pool.join(2.0)
    assert pool.alive == 0
    assert pool.stats.snapshot() == SalesSnapshot(800, 1)
    assert mirror.read() == SalesSnapshot(800, 1)
    assert flight.is_sold_out()
    assert channel.sent == [b"\x9e"]


def test_many_workers_sell_every_seat_once(seller_coordinator, channel, mirror):
    """Totals match the seats sold across flights; one sold-out signal."""
    flights = [
        Flight(RandomPreferencePolicy(seed=n), first_class_seats=2, economy_class_seats=5, number=n)
        for n in (1, 2, 3)
    ]
    pool = make_pool(flights, seller_coordinator, size=5, mirror=mirror)
    for i in range(1, 41):
        pool.clients.put(Client(i))

    pool.start()

    assert seller_coordinator.wait(5.0) is TerminationReason.SOLD_OUT
    pool.join(2.0)
    assert pool.alive == 0
    assert all_sold_out(flights)
    assert pool.stats.snapshot() == SalesSnapshot(3 * (2 * 800 + 5 * 300), 21)
    assert mirror.read() == pool.stats.snapshot()
    assert channel.sent == [b"\x9e"]


def test_workers_stop_on_cancellation(seller_coordinator):
    pool = make_pool([Flight(FixedPreferencePolicy())], seller_coordinator, size=3)
    pool.start()

    seller_coordinator.end(TerminationReason.DEPARTURE, remote=True)
    pool.join(2.0)

    assert pool.alive == 0
    assert pool.stats.snapshot() == SalesSnapshot(0, 0)


def test_worker_cancelled_flag(seller_coordinator):
    worker = Worker(1, seller_coordinator.cancellation)
    assert not worker.cancelled

    seller_coordinator.end(TerminationReason.TOO_RICH, remote=True)

    assert worker.cancelled


def test_revenue_past_record_range_keeps_worker_selling(seller_coordinator, channel, mirror):
    """
    The third billion-dollar seat no longer fits the shared record.
    The sale still counts, the mirror keeps its last good value and the
    worker goes on to announce sold out.
    """
    flight = Flight(
        FixedPreferencePolicy(), first_class_seats=3, economy_class_seats=0,
        first_class_cost=1_000_000_000,
    )
    pool = make_pool([flight], seller_coordinator, mirror=mirror)
    for i in range(1, 5):
        pool.clients.put(Client(i))

    pool.start()

    assert seller_coordinator.wait(5.0) is TerminationReason.SOLD_OUT
    pool.join(2.0)
    assert pool.alive == 0
    assert pool.stats.snapshot() == SalesSnapshot(3_000_000_000, 3)
    assert mirror.read() == SalesSnapshot(2_000_000_000, 2)
    assert channel.sent == [b"\x9e"]
