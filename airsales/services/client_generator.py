"""
Client generator.
Manufactures clients with sequential ids on a randomized period and puts
them at the tail of the client queue.
"""

import random
from typing import Optional

from airsales.core.config import Settings
from airsales.core.logging import get_logger
from airsales.core.metrics import record_client_generated
from airsales.models.client import Client
from airsales.models.ids import IdAllocator
from airsales.services.periodic import PeriodicTrigger
from airsales.services.worker_pool import ClientQueue

logger = get_logger(__name__)


class ClientGenerator:
    def __init__(
        self,
        queue: ClientQueue,
        ids: IdAllocator,
        min_interval_ms: int = 5,
        max_interval_ms: int = 20,
        redraw: bool = True,
        seed: Optional[int] = None,
    ):
        if min_interval_ms > max_interval_ms:
            raise ValueError("min_interval_ms must not exceed max_interval_ms")
        self.queue = queue
        self.ids = ids
        self.min_interval_ms = min_interval_ms
        self.max_interval_ms = max_interval_ms
        self._random = random.Random(seed)
        # Drawn once when the period is fixed for the run
        self._fixed_ms = None if redraw else self._draw_ms()
        self.trigger = PeriodicTrigger("client-generator", self._interval, self.generate_one)

    @classmethod
    def from_settings(cls, settings: Settings, queue: ClientQueue, ids: IdAllocator) -> "ClientGenerator":
        return cls(
            queue,
            ids,
            min_interval_ms=settings.CLIENT_INTERVAL_MIN_MS,
            max_interval_ms=settings.CLIENT_INTERVAL_MAX_MS,
            redraw=settings.CLIENT_INTERVAL_REDRAW,
        )

    def _draw_ms(self) -> float:
        return self._random.uniform(self.min_interval_ms, self.max_interval_ms)

    def _interval(self) -> float:
        ms = self._fixed_ms if self._fixed_ms is not None else self._draw_ms()
        return ms / 1000

    def generate_one(self) -> Client:
        client = Client(id=self.ids.next_id())
        self.queue.put(client)
        record_client_generated()
        logger.debug("client_created", client_id=client.id, queued=self.queue.qsize())
        return client

    def start(self) -> None:
        self.trigger.start()
        logger.info("client_generator_started")

    def stop(self) -> None:
        self.trigger.stop()

    def join(self, timeout: Optional[float] = None) -> None:
        self.trigger.join(timeout)
