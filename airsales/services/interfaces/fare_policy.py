"""
Fare class policy interface.
Decides which class a client is sold when a flight still has room.
"""

from abc import ABC, abstractmethod

from airsales.models.flight import FareClass


def resolve_fare_class(prefer_first: bool, first_available: bool, economy_available: bool) -> FareClass:
    """
    Turn a preference into a class that still has seats.

    First class is granted only when preferred and available; otherwise
    economy if it has room, and first class as the remaining fallback.
    """
    if prefer_first and first_available:
        return FareClass.FIRST
    if economy_available:
        return FareClass.ECONOMY
    return FareClass.FIRST


class FarePolicy(ABC):
    """
    Interface for fare class policies.

    Implementations:
    - RandomPreferencePolicy: one coin flip per booking
    - FixedPreferencePolicy: always the same preference
    """

    @abstractmethod
    def prefer_first(self) -> bool:
        """
        Whether the next client would rather fly first class.

        Returns:
            True to prefer first class, False to prefer economy
        """
        pass

    def choose(self, first_available: bool, economy_available: bool) -> FareClass:
        """
        Pick the class to sell. Called under the flight lock with at least
        one class available.
        """
        return resolve_fare_class(self.prefer_first(), first_available, economy_available)
