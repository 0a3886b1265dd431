from .generated import (
    Base,
    Bookings,
    Cabins,
    Locations,
    ManualOverrides,
    PriceOverrides,
)

__all__ = [
    "Base",
    "Bookings",
    "Cabins",
    "Locations",
    "ManualOverrides",
    "PriceOverrides",
]
