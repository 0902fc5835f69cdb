"""
Service interfaces for dependency inversion.
Allows swapping the fare class policy without changing the booking code.
"""

from .fare_policy import FarePolicy, resolve_fare_class
from .random_policy import FixedPreferencePolicy, RandomPreferencePolicy

__all__ = ['FarePolicy', 'FixedPreferencePolicy', 'RandomPreferencePolicy', 'resolve_fare_class']
