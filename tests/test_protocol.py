"""
Tests for control channel opcodes.
"""

import pytest

from airsales.models.reason import TerminationReason
from airsales.services.protocol import decode_opcode, encode_reason


@pytest.mark.parametrize(
    "reason,code",
    [
        (TerminationReason.DEPARTURE, 0x5D),
        (TerminationReason.TOO_RICH, 0x7A),
        (TerminationReason.SOLD_OUT, 0x9E),
    ],
)
def test_opcode_table(reason, code):
    assert encode_reason(reason) == bytes([code])
    assert decode_opcode(code) is reason


@pytest.mark.parametrize("code", [0x00, 0x5C, 0xFF])
def test_unknown_opcode_decodes_to_none(code):
    assert decode_opcode(code) is None
