"""
End of operation latch.

STATE MACHINE
=============

  RUNNING --end(reason)--> ENDED(reason)

ENDED is terminal. The first call to end() wins, whichever thread makes
it and whether the trigger is local (sold out, revenue, deadline) or a
byte received from the other process. Every later call is a no-op that
returns False.

Side effects of the winning call, in order:
  1. set the cancellation event and stop every registered trigger
  2. log and count the reason
  3. if the reason was detected locally and is one this process announces,
     send its opcode to the counterpart

Each process owns its own latch. The two are linked only by the opcodes on
the control channel, so a local sold-out and an inbound departure racing
each other can leave the two processes with different reasons. No
handshake resolves that; each side keeps the reason it latched first.
"""

import threading
from enum import Enum
from typing import Callable, Iterable, List, Optional, Protocol

from airsales.core.exceptions import ChannelError
from airsales.core.logging import get_logger
from airsales.core.metrics import record_termination, record_unknown_opcode
from airsales.models.reason import TerminationReason
from airsales.services.protocol import decode_opcode, encode_reason

logger = get_logger(__name__)


class State(str, Enum):
    RUNNING = "running"
    ENDED = "ended"


class Stoppable(Protocol):
    def stop(self) -> None: ...


class TerminationCoordinator:
    def __init__(
        self,
        accepted: Iterable[TerminationReason] = (),
        announced: Iterable[TerminationReason] = (),
        send: Optional[Callable[[bytes], None]] = None,
        cancellation: Optional[threading.Event] = None,
    ):
        """
        Args:
            accepted: reasons this process takes from the counterpart
            announced: locally detected reasons sent to the counterpart
            send: writes bytes to the control channel
            cancellation: event observed by workers and triggers
        """
        self.accepted = frozenset(accepted)
        self.announced = frozenset(announced)
        self.send = send
        self.cancellation = cancellation or threading.Event()
        self._triggers: List[Stoppable] = []
        self._lock = threading.Lock()
        self._ended = threading.Event()
        self._reason: Optional[TerminationReason] = None
        self._remote = False

    @property
    def state(self) -> State:
        with self._lock:
            return State.RUNNING if self._reason is None else State.ENDED

    @property
    def reason(self) -> Optional[TerminationReason]:
        with self._lock:
            return self._reason

    @property
    def remote(self) -> bool:
        """Whether the winning trigger came from the counterpart."""
        with self._lock:
            return self._remote

    def register(self, trigger: Stoppable) -> None:
        """Stop `trigger` on transition; immediately if already ended."""
        with self._lock:
            if self._reason is None:
                self._triggers.append(trigger)
                return
        trigger.stop()

    def end(self, reason: TerminationReason, remote: bool = False) -> bool:
        """
        Move to ENDED with `reason`.
        Returns True only for the call that performed the transition.
        """
        with self._lock:
            if self._reason is not None:
                logger.debug(
                    "end_of_operation_ignored",
                    reason=reason.value,
                    ended_by=self._reason.value,
                )
                return False
            self._reason = reason
            self._remote = remote
            triggers = list(self._triggers)
            self._triggers.clear()

        self.cancellation.set()
        for trigger in triggers:
            trigger.stop()

        record_termination(reason.value, remote)
        logger.info(
            "end_of_operation",
            reason=reason.value,
            origin="remote" if remote else "local",
        )

        if not remote and reason in self.announced:
            self._announce(reason)

        self._ended.set()
        return True

    def handle_opcode(self, code: int) -> bool:
        """Feed a byte received from the counterpart into the latch."""
        reason = decode_opcode(code)
        if reason is None or reason not in self.accepted:
            record_unknown_opcode()
            logger.warning("unknown_opcode", code=f"0x{code:02X}")
            return False

        logger.info("signal_received", reason=reason.value, code=f"0x{code:02X}")
        return self.end(reason, remote=True)

    def wait(self, timeout: Optional[float] = None) -> Optional[TerminationReason]:
        """Block until ENDED; returns the reason, or None on timeout."""
        self._ended.wait(timeout)
        return self.reason

    def _announce(self, reason: TerminationReason) -> None:
        payload = encode_reason(reason)
        if self.send is None:
            logger.warning("signal_not_sent", reason=reason.value, error="no channel")
            return
        try:
            self.send(payload)
        except ChannelError as e:
            logger.warning("signal_not_sent", reason=reason.value, error=str(e))
            return
        logger.info("signal_sent", reason=reason.value, code=f"0x{payload[0]:02X}")
