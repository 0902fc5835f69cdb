"""
Tests for the end of operation latch.
"""

import threading

from airsales.core.exceptions import ChannelError
from airsales.models.reason import TerminationReason
from airsales.services.termination import State, TerminationCoordinator


class FakeTrigger:
    def __init__(self):
        self.stopped = False

    def stop(self):
        self.stopped = True


def test_starts_running(seller_coordinator):
    assert seller_coordinator.state is State.RUNNING
    assert seller_coordinator.reason is None
    assert not seller_coordinator.cancellation.is_set()


def test_first_end_wins(seller_coordinator):
    assert seller_coordinator.end(TerminationReason.SOLD_OUT)
    assert not seller_coordinator.end(TerminationReason.DEPARTURE)

    assert seller_coordinator.state is State.ENDED
    assert seller_coordinator.reason is TerminationReason.SOLD_OUT
    assert seller_coordinator.cancellation.is_set()


def test_concurrent_triggers_transition_once(channel):
    """20 threads race; exactly one wins and its reason is kept."""
    coordinator = TerminationCoordinator(
        announced={TerminationReason.SOLD_OUT}, send=channel.send
    )
    reasons = list(TerminationReason)
    start = threading.Barrier(20)
    winners = []
    winners_lock = threading.Lock()

    def trigger(i):
        reason = reasons[i % len(reasons)]
        start.wait()
        if coordinator.end(reason):
            with winners_lock:
                winners.append(reason)

    threads = [threading.Thread(target=trigger, args=(i,)) for i in range(20)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(winners) == 1
    assert coordinator.reason is winners[0]
    expected = [b"\x9e"] if winners[0] is TerminationReason.SOLD_OUT else []
    assert channel.sent == expected


def test_local_sold_out_is_announced_once(seller_coordinator, channel):
    seller_coordinator.end(TerminationReason.SOLD_OUT)
    seller_coordinator.end(TerminationReason.SOLD_OUT)

    assert channel.sent == [b"\x9e"]


def test_observer_announces_departure_and_too_rich(channel):
    for reason, payload in [
        (TerminationReason.DEPARTURE, b"\x5d"),
        (TerminationReason.TOO_RICH, b"\x7a"),
    ]:
        coordinator = TerminationCoordinator(
            accepted={TerminationReason.SOLD_OUT},
            announced={TerminationReason.DEPARTURE, TerminationReason.TOO_RICH},
            send=channel.send,
        )
        coordinator.end(reason)
        assert channel.sent[-1] == payload


def test_remote_signal_maps_to_local_reason(seller_coordinator, channel):
    """A received byte ends the latch with the mapped reason, without echo."""
    assert seller_coordinator.handle_opcode(0x7A)

    assert seller_coordinator.reason is TerminationReason.TOO_RICH
    assert seller_coordinator.remote
    assert channel.sent == []


def test_remote_sold_out_ends_observer(observer_coordinator, channel):
    assert observer_coordinator.handle_opcode(0x9E)

    assert observer_coordinator.reason is TerminationReason.SOLD_OUT
    assert channel.sent == []


def test_unknown_byte_is_ignored(seller_coordinator):
    assert not seller_coordinator.handle_opcode(0x42)
    assert seller_coordinator.state is State.RUNNING


def test_wrong_direction_byte_is_ignored(seller_coordinator, observer_coordinator):
    """The seller never takes sold-out from the observer and vice versa."""
    assert not seller_coordinator.handle_opcode(0x9E)
    assert not observer_coordinator.handle_opcode(0x5D)

    assert seller_coordinator.state is State.RUNNING
    assert observer_coordinator.state is State.RUNNING


def test_remote_signal_after_local_end_is_absorbed(seller_coordinator, channel):
    seller_coordinator.end(TerminationReason.SOLD_OUT)

    assert not seller_coordinator.handle_opcode(0x5D)
    assert seller_coordinator.reason is TerminationReason.SOLD_OUT
    assert channel.sent == [b"\x9e"]


def test_registered_triggers_are_stopped(seller_coordinator):
    before = FakeTrigger()
    seller_coordinator.register(before)

    seller_coordinator.end(TerminationReason.DEPARTURE, remote=True)
    after = FakeTrigger()
    seller_coordinator.register(after)

    assert before.stopped
    assert after.stopped


def test_send_failure_does_not_raise():
    def broken(data):
        raise ChannelError("No counterpart connected")

    coordinator = TerminationCoordinator(announced={TerminationReason.SOLD_OUT}, send=broken)

    assert coordinator.end(TerminationReason.SOLD_OUT)
    assert coordinator.reason is TerminationReason.SOLD_OUT


def test_announce_without_channel_does_not_raise():
    coordinator = TerminationCoordinator(announced={TerminationReason.SOLD_OUT})
    assert coordinator.end(TerminationReason.SOLD_OUT)


def test_wait(seller_coordinator):
    assert seller_coordinator.wait(0.05) is None

    threading.Timer(0.05, seller_coordinator.end, args=(TerminationReason.DEPARTURE,)).start()

    assert seller_coordinator.wait(2.0) is TerminationReason.DEPARTURE
