"""
Pytest fixtures for settings, shared memory and termination wiring.

Every test gets its own shared memory and mutex names so runs never
collide, and the control channel binds port 0.
"""

import threading
import uuid
from typing import List

import pytest

from airsales.core.config import Settings
from airsales.infrastructure.shared_memory import NamedMutex, SalesMirror
from airsales.models.reason import TerminationReason
from airsales.services.termination import TerminationCoordinator


class RecordingChannel:
    """Stands in for the control channel; keeps every payload sent."""

    def __init__(self):
        self.sent: List[bytes] = []
        self._lock = threading.Lock()

    def send(self, data: bytes) -> None:
        with self._lock:
            self.sent.append(data)


@pytest.fixture
def shm_name() -> str:
    return f"airsales_t_{uuid.uuid4().hex[:10]}"


@pytest.fixture
def settings(shm_name: str) -> Settings:
    """One small flight, one worker, fast timers."""
    return Settings(
        _env_file=None,
        WORKER_COUNT=1,
        FLIGHT_COUNT=1,
        FIRST_CLASS_SEATS=2,
        ECONOMY_CLASS_SEATS=0,
        FARE_POLICY="first",
        TOO_RICH_THRESHOLD=1000,
        DEPARTURE_SECONDS=10.0,
        STATS_POLL_INTERVAL=0.05,
        CLIENT_INTERVAL_MIN_MS=1,
        CLIENT_INTERVAL_MAX_MS=3,
        WORKER_IDLE_SLEEP=0.005,
        CHANNEL_PORT=0,
        CHANNEL_CONNECT_TIMEOUT=5.0,
        SHM_NAME=shm_name,
        SHM_SIZE=64,
        SHM_MUTEX_NAME=f"{shm_name}_mutex",
    )


@pytest.fixture
def mirror(shm_name: str, tmp_path):
    """Owner-side mirror on a fresh region."""
    mirror = SalesMirror(shm_name, NamedMutex(shm_name, directory=str(tmp_path)), size=64, owner=True)
    yield mirror
    mirror.close()


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def seller_coordinator(channel: RecordingChannel) -> TerminationCoordinator:
    """Latch wired the way the seller wires it."""
    return TerminationCoordinator(
        accepted={TerminationReason.DEPARTURE, TerminationReason.TOO_RICH},
        announced={TerminationReason.SOLD_OUT},
        send=channel.send,
    )


@pytest.fixture
def observer_coordinator(channel: RecordingChannel) -> TerminationCoordinator:
    """Latch wired the way the observer wires it."""
    return TerminationCoordinator(
        accepted={TerminationReason.SOLD_OUT},
        announced={TerminationReason.DEPARTURE, TerminationReason.TOO_RICH},
        send=channel.send,
    )
