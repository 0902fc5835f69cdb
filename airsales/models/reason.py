"""
Reasons for ending the sale.
"""

from enum import Enum


class TerminationReason(str, Enum):
    DEPARTURE = "departure"  # Departure deadline elapsed (observer)
    TOO_RICH = "too_rich"    # Revenue threshold reached (observer)
    SOLD_OUT = "sold_out"    # Every flight is full (seller)
