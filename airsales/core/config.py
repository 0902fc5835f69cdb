"""
Simulation configuration using pydantic-settings.
All config is loaded from AIRSALES_* environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

MAX_RECORD_VALUE = 2**31 - 1


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Air Sales Simulator"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Inventory
    WORKER_COUNT: int = Field(5, ge=1)
    FLIGHT_COUNT: int = Field(3, ge=1)
    FIRST_CLASS_SEATS: int = Field(12, ge=0)
    ECONOMY_CLASS_SEATS: int = Field(120, ge=0)
    FIRST_CLASS_COST: int = Field(800, gt=0)
    ECONOMY_CLASS_COST: int = Field(300, gt=0)

    # Fare class selection
    FARE_POLICY: Literal["random", "first", "economy"] = "random"
    FARE_POLICY_SEED: Optional[int] = None

    # Observer limits
    TOO_RICH_THRESHOLD: int = Field(700_000, gt=0)
    DEPARTURE_SECONDS: float = Field(5.0, gt=0)
    STATS_POLL_INTERVAL: float = Field(1.0, gt=0)

    # Client arrivals (milliseconds)
    CLIENT_INTERVAL_MIN_MS: int = Field(5, ge=0)
    CLIENT_INTERVAL_MAX_MS: int = Field(20, ge=0)
    CLIENT_INTERVAL_REDRAW: bool = True

    # Workers poll the queue instead of blocking on it
    WORKER_IDLE_SLEEP: float = Field(0.01, gt=0)

    # Inter-process channel
    CHANNEL_HOST: str = "127.0.0.1"
    CHANNEL_PORT: int = Field(17000, ge=0, le=65535)
    CHANNEL_CONNECT_TIMEOUT: float = Field(10.0, gt=0)

    # Shared memory mirror
    SHM_NAME: str = "AirSalesMMF"
    SHM_SIZE: int = Field(4096, ge=8)
    SHM_MUTEX_NAME: str = "AirSalesMMF_Mutex"

    # Prometheus exporter, disabled when unset
    METRICS_PORT: Optional[int] = None

    model_config = {
        "env_file": ".env",
        "env_prefix": "AIRSALES_",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def check_client_interval(self) -> "Settings":
        if self.CLIENT_INTERVAL_MIN_MS > self.CLIENT_INTERVAL_MAX_MS:
            raise ValueError("CLIENT_INTERVAL_MIN_MS must not exceed CLIENT_INTERVAL_MAX_MS")
        return self

    @model_validator(mode="after")
    def check_revenue_fits_mirror(self) -> "Settings":
        # The shared memory record stores revenue as a signed 32-bit integer
        max_revenue = self.FLIGHT_COUNT * (
            self.FIRST_CLASS_SEATS * self.FIRST_CLASS_COST
            + self.ECONOMY_CLASS_SEATS * self.ECONOMY_CLASS_COST
        )
        if max_revenue > MAX_RECORD_VALUE:
            raise ValueError(
                f"Selling every seat would earn {max_revenue}, "
                f"more than the shared record holds ({MAX_RECORD_VALUE})"
            )
        return self


@lru_cache()
def get_settings() -> Settings:
    return Settings()
