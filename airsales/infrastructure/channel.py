"""
Control channel between seller and observer.

A single persistent TCP connection: the seller listens, the observer
connects. Bytes arriving on either end are handed one at a time to
`on_byte` from a reader thread.
"""

import socket
import threading
import time
from typing import Callable, Optional

from airsales.core.exceptions import ChannelError
from airsales.core.logging import get_logger

logger = get_logger(__name__)

ByteHandler = Callable[[int], object]


class _ByteChannel:
    def __init__(self, on_byte: Optional[ByteHandler] = None):
        self.on_byte = on_byte
        self.peer: Optional[str] = None
        self._sock: Optional[socket.socket] = None
        self._send_lock = threading.Lock()
        self._connected = threading.Event()
        self._closed = threading.Event()

    @property
    def connected(self) -> bool:
        return self._connected.is_set() and not self._closed.is_set()

    def send(self, data: bytes) -> None:
        with self._send_lock:
            if self._sock is None or self._closed.is_set():
                raise ChannelError("No counterpart connected")
            try:
                self._sock.sendall(data)
            except OSError as e:
                raise ChannelError(f"Send to {self.peer} failed: {e}") from e

    def _attach(self, sock: socket.socket, peer: str) -> None:
        with self._send_lock:
            self._sock = sock
            self.peer = peer
        self._connected.set()

    def _read_loop(self, sock: socket.socket) -> None:
        while not self._closed.is_set():
            try:
                data = sock.recv(1024)
            except OSError:
                break
            if not data:
                logger.info("channel_disconnected", peer=self.peer)
                break
            for code in data:
                if self.on_byte is not None:
                    self.on_byte(code)

    def close(self) -> None:
        self._closed.set()
        with self._send_lock:
            sock, self._sock = self._sock, None
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            sock.close()


class ChannelServer(_ByteChannel):
    """Seller side: accepts the observer's connection."""

    def __init__(self, host: str, port: int, on_byte: Optional[ByteHandler] = None):
        super().__init__(on_byte)
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._listener.bind((host, port))
        self._listener.listen(1)
        # Accept polls so close() can stop the thread
        self._listener.settimeout(0.2)
        self.host = host
        self.port = self._listener.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, name="channel-server", daemon=True)

    def start(self) -> None:
        self._thread.start()
        logger.info("channel_listening", host=self.host, port=self.port)

    def wait_connected(self, timeout: Optional[float] = None) -> bool:
        return self._connected.wait(timeout)

    def _serve(self) -> None:
        while not self._closed.is_set():
            try:
                sock, address = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            sock.settimeout(None)
            peer = f"{address[0]}:{address[1]}"
            self._attach(sock, peer)
            logger.info("counterpart_connected", peer=peer)
            # One counterpart per run
            self._read_loop(sock)
            return

    def close(self) -> None:
        super().close()
        self._listener.close()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(1.0)


class ChannelClient(_ByteChannel):
    """Observer side: connects to the seller."""

    def __init__(self, host: str, port: int, on_byte: Optional[ByteHandler] = None):
        super().__init__(on_byte)
        self.host = host
        self.port = port
        self._thread: Optional[threading.Thread] = None

    def connect(self, timeout: float = 10.0) -> None:
        """Connect, retrying until the seller is listening or `timeout` passes."""
        deadline = time.monotonic() + timeout
        while True:
            try:
                sock = socket.create_connection((self.host, self.port), timeout=timeout)
                break
            except OSError as e:
                if time.monotonic() >= deadline:
                    raise ChannelError(f"Cannot reach seller at {self.host}:{self.port}: {e}") from e
                time.sleep(0.1)

        sock.settimeout(None)
        self._attach(sock, f"{self.host}:{self.port}")
        self._thread = threading.Thread(
            target=self._read_loop, args=(sock,), name="channel-client", daemon=True
        )
        self._thread.start()
        logger.info("channel_connected", peer=self.peer)

    def close(self) -> None:
        super().close()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(1.0)
