"""
Domain records for the sales simulation.
"""

from .client import Client
from .flight import BookingResult, FareClass, Flight
from .ids import IdAllocator
from .reason import TerminationReason
from .worker import Worker

__all__ = [
    'BookingResult',
    'Client',
    'FareClass',
    'Flight',
    'IdAllocator',
    'TerminationReason',
    'Worker',
]
