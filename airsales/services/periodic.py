"""
Periodic trigger running on its own thread.
Used for client arrivals, statistics polling and the departure deadline.
"""

import threading
from typing import Callable, Optional, Union

from airsales.core.logging import get_logger

logger = get_logger(__name__)

Interval = Union[float, Callable[[], float]]


class PeriodicTrigger:
    """
    Calls `action` every `interval` seconds until stopped.

    `interval` may be a callable, re-evaluated before each wait, for
    randomized periods. With `repeat=False` the action fires at most once.
    """

    def __init__(self, name: str, interval: Interval, action: Callable[[], None], repeat: bool = True):
        self.name = name
        self.interval = interval
        self.action = action
        self.repeat = repeat
        self.fired = 0
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def _next_interval(self) -> float:
        if callable(self.interval):
            return self.interval()
        return self.interval

    def _run(self):
        while not self._stopped.wait(self._next_interval()):
            self.fired += 1
            try:
                self.action()
            except Exception:
                logger.exception("trigger_action_failed", trigger=self.name)
            if not self.repeat:
                break

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        """Stop further firings. Safe to call from inside the action."""
        self._stopped.set()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout)
