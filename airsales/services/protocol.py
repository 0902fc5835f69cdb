"""
Control channel opcodes.

Single unframed bytes, no payload, no acknowledgement:

  0x5D  observer -> seller   departure deadline elapsed
  0x7A  observer -> seller   revenue threshold crossed
  0x9E  seller -> observer   every flight sold out
"""

from typing import Optional

from airsales.models.reason import TerminationReason

DEPARTURE = 0x5D
TOO_RICH = 0x7A
SOLD_OUT = 0x9E

OPCODES = {
    TerminationReason.DEPARTURE: DEPARTURE,
    TerminationReason.TOO_RICH: TOO_RICH,
    TerminationReason.SOLD_OUT: SOLD_OUT,
}

REASONS = {code: reason for reason, code in OPCODES.items()}


def encode_reason(reason: TerminationReason) -> bytes:
    return bytes([OPCODES[reason]])


def decode_opcode(code: int) -> Optional[TerminationReason]:
    """Map a received byte to its reason, or None if it is not an opcode."""
    return REASONS.get(code)
