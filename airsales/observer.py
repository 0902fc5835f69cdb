"""
Observer process.

Connects to the seller, reads the shared memory mirror on a fixed cadence
and ends the sale when revenue crosses the threshold (too rich) or when the
departure deadline elapses. Either way the matching opcode is sent to the
seller. A sold-out byte from the seller ends the observer too.
"""

import sys
from typing import Optional

from airsales.core.config import Settings, get_settings
from airsales.core.exceptions import AirSalesError
from airsales.core.logging import get_logger, setup_logging
from airsales.core.metrics import record_sales, start_metrics_server
from airsales.infrastructure.channel import ChannelClient
from airsales.infrastructure.shared_memory import SalesMirror
from airsales.models.reason import TerminationReason
from airsales.services.periodic import PeriodicTrigger
from airsales.services.sales_stat import SalesSnapshot, SalesStat
from airsales.services.termination import TerminationCoordinator

logger = get_logger(__name__)


class Observer:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.threshold = settings.TOO_RICH_THRESHOLD
        self.stats = SalesStat()
        self.coordinator = TerminationCoordinator(
            accepted={TerminationReason.SOLD_OUT},
            announced={TerminationReason.DEPARTURE, TerminationReason.TOO_RICH},
        )
        self.poller = PeriodicTrigger("stats-poll", settings.STATS_POLL_INTERVAL, self.poll)
        self.departure = PeriodicTrigger(
            "departure", settings.DEPARTURE_SECONDS, self.depart, repeat=False
        )
        self.mirror: Optional[SalesMirror] = None
        self.channel: Optional[ChannelClient] = None

    def open(self) -> None:
        """Connect to the seller, then attach to the region it created."""
        self.channel = ChannelClient(
            self.settings.CHANNEL_HOST,
            self.settings.CHANNEL_PORT,
            on_byte=self.coordinator.handle_opcode,
        )
        self.channel.connect(self.settings.CHANNEL_CONNECT_TIMEOUT)
        self.coordinator.send = self.channel.send
        try:
            self.mirror = SalesMirror.from_settings(self.settings, owner=False)
        except AirSalesError:
            self.channel.close()
            raise

    def start(self) -> None:
        if self.mirror is None:
            raise RuntimeError("Observer.open() must be called before start()")
        self.coordinator.register(self.poller)
        self.coordinator.register(self.departure)
        self.poller.start()
        self.departure.start()
        logger.info(
            "observer_started",
            threshold=self.threshold,
            departure_seconds=self.settings.DEPARTURE_SECONDS,
        )

    def poll(self) -> SalesSnapshot:
        """Read the mirror and check the revenue threshold."""
        snapshot = self.mirror.read()
        self.stats.total_revenue = snapshot.total_revenue
        self.stats.total_clients_served = snapshot.total_clients_served
        record_sales("observer", *snapshot)

        logger.info(
            "stats_polled",
            total_revenue=snapshot.total_revenue,
            total_clients_served=snapshot.total_clients_served,
        )

        if snapshot.total_revenue >= self.threshold:
            logger.info("revenue_threshold_reached", total_revenue=snapshot.total_revenue)
            self.coordinator.end(TerminationReason.TOO_RICH)
        return snapshot

    def depart(self) -> None:
        logger.info("departure_deadline_elapsed")
        self.coordinator.end(TerminationReason.DEPARTURE)

    def wait(self, timeout: Optional[float] = None) -> Optional[TerminationReason]:
        return self.coordinator.wait(timeout)

    def close(self) -> None:
        self.poller.stop()
        self.departure.stop()
        self.poller.join(1.0)
        self.departure.join(1.0)
        if self.channel is not None:
            self.channel.close()
        if self.mirror is not None:
            self.mirror.close()
        logger.info("observer_closed", sales=str(self.stats))

    def __enter__(self) -> "Observer":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def main() -> int:
    settings = get_settings()
    setup_logging(settings, process="observer")
    start_metrics_server(settings.METRICS_PORT)

    logger.info("observer_starting", app=settings.APP_NAME, version=settings.APP_VERSION)

    try:
        with Observer(settings) as observer:
            observer.start()
            reason = observer.wait()
    except KeyboardInterrupt:
        logger.info("observer_interrupted")
        return 130
    except AirSalesError as e:
        logger.error("observer_failed", error=str(e))
        return 1

    logger.info("observer_finished", reason=reason.value)
    return 0


if __name__ == "__main__":
    sys.exit(main())
