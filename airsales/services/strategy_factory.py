"""
Fare policy factory.
Configures which fare class policy the flights use.
"""

from airsales.core.config import Settings
from airsales.services.interfaces.fare_policy import FarePolicy
from airsales.services.interfaces.random_policy import FixedPreferencePolicy, RandomPreferencePolicy


def get_fare_policy(settings: Settings) -> FarePolicy:
    """
    Get configured fare policy.

    FARE_POLICY selects:
    - random (default): coin flip per booking, seeded by FARE_POLICY_SEED
    - first: always prefer first class
    - economy: always prefer economy
    """
    strategy = settings.FARE_POLICY.lower()

    if strategy == 'first':
        return FixedPreferencePolicy(first=True)
    if strategy == 'economy':
        return FixedPreferencePolicy(first=False)
    if strategy == 'random':
        return RandomPreferencePolicy(seed=settings.FARE_POLICY_SEED)
    raise ValueError(f"Unknown fare policy: {settings.FARE_POLICY}")
