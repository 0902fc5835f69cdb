"""
Seller process.

Owns the flights, the client pipeline and the shared memory region.
Listens on the control channel for the observer, then sells until the
termination latch fires: locally when every flight is sold out, or
remotely on a departure or too-rich signal.
"""

import sys
from typing import Optional

from airsales.core.config import Settings, get_settings
from airsales.core.exceptions import ChannelError
from airsales.core.logging import get_logger, setup_logging
from airsales.core.metrics import start_metrics_server
from airsales.infrastructure.channel import ChannelServer
from airsales.infrastructure.shared_memory import SalesMirror
from airsales.models.flight import Flight
from airsales.models.ids import IdAllocator
from airsales.models.reason import TerminationReason
from airsales.services.client_generator import ClientGenerator
from airsales.services.interfaces.fare_policy import FarePolicy
from airsales.services.sales_stat import SalesStat
from airsales.services.strategy_factory import get_fare_policy
from airsales.services.termination import TerminationCoordinator
from airsales.services.worker_pool import ClientQueue, WorkerPool

logger = get_logger(__name__)


class Seller:
    def __init__(self, settings: Settings, policy: Optional[FarePolicy] = None):
        self.settings = settings
        policy = policy or get_fare_policy(settings)

        self.flights = [
            Flight(
                policy,
                first_class_seats=settings.FIRST_CLASS_SEATS,
                economy_class_seats=settings.ECONOMY_CLASS_SEATS,
                first_class_cost=settings.FIRST_CLASS_COST,
                economy_class_cost=settings.ECONOMY_CLASS_COST,
                number=i + 1,
            )
            for i in range(settings.FLIGHT_COUNT)
        ]
        self.stats = SalesStat()
        self.clients = ClientQueue()
        self.coordinator = TerminationCoordinator(
            accepted={TerminationReason.DEPARTURE, TerminationReason.TOO_RICH},
            announced={TerminationReason.SOLD_OUT},
        )
        self.generator = ClientGenerator.from_settings(settings, self.clients, IdAllocator())
        self.mirror: Optional[SalesMirror] = None
        self.channel: Optional[ChannelServer] = None
        self.pool: Optional[WorkerPool] = None

    def open(self) -> None:
        """Create the shared region and start listening for the observer."""
        self.mirror = SalesMirror.from_settings(self.settings, owner=True)
        self.pool = WorkerPool(
            self.settings.WORKER_COUNT,
            self.flights,
            self.clients,
            self.stats,
            self.coordinator,
            mirror=self.mirror,
            idle_sleep=self.settings.WORKER_IDLE_SLEEP,
        )

        self.channel = ChannelServer(
            self.settings.CHANNEL_HOST,
            self.settings.CHANNEL_PORT,
            on_byte=self.coordinator.handle_opcode,
        )
        self.coordinator.send = self.channel.send
        self.channel.start()

        for flight in self.flights:
            logger.info(
                "flight_initialized",
                flight=flight.number,
                first_class_seats=flight.first_class_seats,
                economy_class_seats=flight.economy_class_seats,
            )

    def start(self, generate_clients: bool = True, wait_for_observer: bool = True) -> None:
        if self.pool is None:
            raise RuntimeError("Seller.open() must be called before start()")

        if wait_for_observer:
            logger.info("waiting_for_observer", port=self.channel.port)
            if not self.channel.wait_connected(self.settings.CHANNEL_CONNECT_TIMEOUT):
                raise ChannelError("Observer did not connect")

        self.coordinator.register(self.generator)
        if generate_clients:
            self.generator.start()
        self.pool.start()

    def wait(self, timeout: Optional[float] = None) -> Optional[TerminationReason]:
        return self.coordinator.wait(timeout)

    def close(self) -> None:
        self.generator.stop()
        # Workers only stop through the cancellation event; the mirror must
        # outlive every publish
        self.coordinator.cancellation.set()
        if self.pool is not None:
            self.pool.join()
        self.generator.join(1.0)
        if self.channel is not None:
            self.channel.close()
        if self.mirror is not None:
            self.mirror.close()
        logger.info("seller_closed", sales=str(self.stats))

    def __enter__(self) -> "Seller":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def main() -> int:
    settings = get_settings()
    setup_logging(settings, process="seller")
    start_metrics_server(settings.METRICS_PORT)

    logger.info("seller_starting", app=settings.APP_NAME, version=settings.APP_VERSION)

    with Seller(settings) as seller:
        try:
            seller.start()
            reason = seller.wait()
        except KeyboardInterrupt:
            logger.info("seller_interrupted")
            return 130
        except ChannelError as e:
            logger.error("seller_failed", error=str(e))
            return 1

    logger.info("seller_finished", reason=reason.value)
    return 0


if __name__ == "__main__":
    sys.exit(main())
