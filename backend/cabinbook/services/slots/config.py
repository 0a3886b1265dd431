# backend/cabinbook/services/slots/config.py
"""
Booking configuration for the slot grid.
"""

from dataclasses import dataclass
from functools import lru_cache

from ...config import settings


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the cabin booking grid.

    Attributes:
        horizon_days: How many days ahead the grid may be requested
        service_fee_rate: Marketplace fee added on top of the slot subtotal
        max_batch_size: Upper bound on selections in one submission
    """
    horizon_days: int = 90
    service_fee_rate: float = 0.10
    max_batch_size: int = 93  # one month of three shifts

    def __post_init__(self):
        """Validate configuration."""
        if self.horizon_days < 1:
            raise ValueError(f"horizon_days must be positive, got {self.horizon_days}")
        if not 0 <= self.service_fee_rate < 1:
            raise ValueError(f"service_fee_rate must be in [0, 1), got {self.service_fee_rate}")


@lru_cache
def get_booking_config() -> BookingConfig:
    """Get booking configuration (singleton), seeded from settings."""
    return BookingConfig(
        horizon_days=settings.horizon_days,
        service_fee_rate=settings.service_fee_rate,
    )
