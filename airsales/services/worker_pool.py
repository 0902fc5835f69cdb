"""
Worker pool selling seats to queued clients.

Each worker runs on its own thread:
  1. Take a client from the queue without blocking. If the queue is empty,
     wait briefly on the cancellation event and poll again.
  2. Offer the client every flight in a fixed order until one books.
  3. On a sale, add the cost to the statistics and publish them to the
     shared memory mirror.
  4. If no flight had room and every flight is sold out, end the sale
     with SOLD_OUT and stop this worker. The other workers see the
     cancellation at their next poll.

Near the last seat several workers can each find no room and check
sold-out at the same time. The termination latch absorbs the duplicates.
"""

import queue
import threading
from typing import List, Optional, Protocol, Sequence

from airsales.core.exceptions import SharedMemoryError
from airsales.core.logging import get_logger
from airsales.core.metrics import record_booking, record_sales, record_unserved_client
from airsales.models.client import Client
from airsales.models.flight import BookingResult, Flight
from airsales.models.ids import IdAllocator
from airsales.models.reason import TerminationReason
from airsales.models.worker import Worker
from airsales.services.sales_stat import SalesSnapshot, SalesStat
from airsales.services.termination import TerminationCoordinator

logger = get_logger(__name__)


class ClientQueue:
    """Unbounded FIFO safe for many producers and consumers."""

    def __init__(self):
        self._queue: "queue.SimpleQueue[Client]" = queue.SimpleQueue()

    def put(self, client: Client) -> None:
        self._queue.put(client)

    def try_get(self) -> Optional[Client]:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def qsize(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()


class StatsPublisher(Protocol):
    def publish(self, stats: SalesStat) -> SalesSnapshot: ...


def all_sold_out(flights: Sequence[Flight]) -> bool:
    return all(flight.is_sold_out() for flight in flights)


class WorkerPool:
    def __init__(
        self,
        size: int,
        flights: Sequence[Flight],
        clients: ClientQueue,
        stats: SalesStat,
        coordinator: TerminationCoordinator,
        mirror: Optional[StatsPublisher] = None,
        ids: Optional[IdAllocator] = None,
        idle_sleep: float = 0.01,
    ):
        if size < 1:
            raise ValueError("Worker pool needs at least one worker")
        ids = ids or IdAllocator()
        self.flights = list(flights)
        self.clients = clients
        self.stats = stats
        self.coordinator = coordinator
        self.mirror = mirror
        self.idle_sleep = idle_sleep
        self.workers = [Worker(ids.next_id(), coordinator.cancellation) for _ in range(size)]
        self._threads: List[threading.Thread] = []

    def start(self) -> None:
        for worker in self.workers:
            thread = threading.Thread(
                target=self.sell, args=(worker,), name=f"worker-{worker.id}", daemon=True
            )
            self._threads.append(thread)
            thread.start()
        logger.info("workers_started", count=len(self.workers))

    def join(self, timeout: Optional[float] = None) -> None:
        for thread in self._threads:
            thread.join(timeout)

    @property
    def alive(self) -> int:
        return sum(1 for thread in self._threads if thread.is_alive())

    def sell(self, worker: Worker) -> None:
        """Worker loop; returns on cancellation or after announcing sold out."""
        while not worker.cancelled:
            client = self.clients.try_get()
            if client is None:
                worker.cancellation.wait(self.idle_sleep)
                continue

            if self.serve(worker, client) is not None:
                continue

            if all_sold_out(self.flights):
                logger.info("all_flights_sold_out", worker_id=worker.id)
                self.coordinator.end(TerminationReason.SOLD_OUT)
                return

        logger.debug("worker_stopped", worker_id=worker.id)

    def serve(self, worker: Worker, client: Client) -> Optional[BookingResult]:
        """Try every flight for `client`; returns the booking or None."""
        logger.debug("client_processing", worker_id=worker.id, client_id=client.id)

        for flight in self.flights:
            result = flight.try_book_seat()
            if not result.booked:
                continue

            self.stats.record_sale(result.cost)
            snapshot = self._publish()
            record_booking(result.fare_class.value)
            record_sales("seller", *snapshot)

            logger.info(
                "seat_booked",
                worker_id=worker.id,
                client_id=client.id,
                flight=flight.number,
                fare_class=result.fare_class.value,
                cost=result.cost,
            )
            return result

        record_unserved_client()
        logger.info("client_unserved", worker_id=worker.id, client_id=client.id)
        return None

    def _publish(self) -> SalesSnapshot:
        if self.mirror is None:
            return self.stats.snapshot()
        try:
            return self.mirror.publish(self.stats)
        except SharedMemoryError as e:
            # The sale stands; only the mirror falls behind
            logger.error("sales_publish_failed", error=str(e))
            return self.stats.snapshot()
