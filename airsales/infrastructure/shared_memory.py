"""
Shared memory mirror of the sales statistics.

Layout (little-endian, first 8 bytes of the region):
  [0, 4)  total revenue, signed 32-bit
  [4, 8)  total clients served, signed 32-bit

Both processes bracket every access with a named mutex so the observer
never reads a half-written record. The mutex is an flock() on a lock file
derived from the agreed name, plus a thread lock because flock() does not
exclude threads that share one file descriptor.
"""

import fcntl
import os
import struct
import sys
import tempfile
import threading
from multiprocessing import shared_memory
from pathlib import Path
from typing import Optional

from airsales.core.exceptions import SharedMemoryError
from airsales.core.logging import get_logger
from airsales.services.sales_stat import SalesSnapshot, SalesStat

logger = get_logger(__name__)

RECORD = struct.Struct("<ii")


def pack_sales(total_revenue: int, total_clients_served: int) -> bytes:
    try:
        return RECORD.pack(total_revenue, total_clients_served)
    except struct.error as e:
        raise SharedMemoryError(
            f"Sales ({total_revenue}, {total_clients_served}) do not fit the shared record"
        ) from e


def unpack_sales(data: bytes) -> SalesSnapshot:
    return SalesSnapshot(*RECORD.unpack(data[:RECORD.size]))


class NamedMutex:
    """Cross-process mutual exclusion known to both sides by name."""

    def __init__(self, name: str, directory: Optional[str] = None):
        self.name = name
        self.path = Path(directory or tempfile.gettempdir()) / f"{name}.lock"
        self._thread_lock = threading.Lock()
        self._fd: Optional[int] = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o666)

    def acquire(self) -> None:
        self._thread_lock.acquire()
        try:
            fcntl.flock(self._fd, fcntl.LOCK_EX)
        except BaseException:
            self._thread_lock.release()
            raise

    def release(self) -> None:
        try:
            fcntl.flock(self._fd, fcntl.LOCK_UN)
        finally:
            self._thread_lock.release()

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()

    def close(self) -> None:
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None


class SalesMirror:
    """
    Fixed-layout view of the sales aggregate in a named shared region.

    The owner (seller) creates the region, zeroes the record and unlinks it
    on close. Other processes attach to the existing region.
    """

    def __init__(self, name: str, mutex: NamedMutex, size: int = 4096, owner: bool = False):
        self.name = name
        self.mutex = mutex
        self.owner = owner
        self._shm = self._open(name, size, owner)

        if self._shm.size < RECORD.size:
            self._shm.close()
            if owner:
                self._shm.unlink()
            raise SharedMemoryError(
                f"Region {name} holds {self._shm.size} bytes, need {RECORD.size}"
            )

        if owner:
            with self.mutex:
                self._shm.buf[:RECORD.size] = pack_sales(0, 0)

        logger.info("shared_memory_opened", name=name, size=self._shm.size, owner=owner)

    @staticmethod
    def _open(name: str, size: int, owner: bool) -> shared_memory.SharedMemory:
        if owner:
            try:
                return shared_memory.SharedMemory(name=name, create=True, size=size)
            except FileExistsError:
                # Left over from an earlier run; reuse it
                logger.warning("shared_memory_reused", name=name)
                return shared_memory.SharedMemory(name=name)

        try:
            if sys.version_info >= (3, 13):
                # The owner unlinks; attaching must not register for cleanup
                return shared_memory.SharedMemory(name=name, track=False)
            return shared_memory.SharedMemory(name=name)
        except FileNotFoundError as e:
            raise SharedMemoryError(f"Shared region {name} does not exist") from e

    @classmethod
    def from_settings(cls, settings, owner: bool) -> "SalesMirror":
        mutex = NamedMutex(settings.SHM_MUTEX_NAME)
        try:
            return cls(settings.SHM_NAME, mutex, size=settings.SHM_SIZE, owner=owner)
        except SharedMemoryError:
            mutex.close()
            raise

    def publish(self, stats: SalesStat) -> SalesSnapshot:
        """Copy the current aggregate into the region."""
        with self.mutex:
            snapshot = stats.snapshot()
            self._shm.buf[:RECORD.size] = pack_sales(*snapshot)
        return snapshot

    def read(self) -> SalesSnapshot:
        with self.mutex:
            data = bytes(self._shm.buf[:RECORD.size])
        return unpack_sales(data)

    def close(self) -> None:
        self._shm.close()
        if self.owner:
            try:
                self._shm.unlink()
            except FileNotFoundError:
                pass
            try:
                self.mutex.path.unlink()
            except FileNotFoundError:
                pass
        self.mutex.close()
        logger.info("shared_memory_closed", name=self.name, owner=self.owner)
