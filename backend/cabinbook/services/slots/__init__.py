# backend/cabinbook/services/slots/__init__.py
"""
Cabin slot availability and booking module.

SlotGrid                    enumerate and render (date, shift) cells
AvailabilityOverrideStore   owner manual open/close per slot
PricingResolver             override-or-default price per slot
BookingConflictGuard        at-most-once reservation per slot
BookingRequestCoordinator   multi-slot submissions with per-slot outcomes
"""

from .config import BookingConfig, get_booking_config
from .keys import ACTIVE_STATUSES, SHIFTS, BookingStatus, Shift, SlotKey
from .grid import SlotCell, SlotGrid, ShiftSummary
from .overrides import AvailabilityOverrideStore
from .pricing import PricingResolver
from .guard import BookingConflictGuard
from .coordinator import STORE_ERROR, BatchResult, BatchStatus, BookingRequestCoordinator, SlotOutcome

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "ACTIVE_STATUSES",
    "SHIFTS",
    "BookingStatus",
    "Shift",
    "SlotKey",
    "SlotCell",
    "SlotGrid",
    "ShiftSummary",
    "AvailabilityOverrideStore",
    "PricingResolver",
    "BookingConflictGuard",
    "BatchResult",
    "BatchStatus",
    "BookingRequestCoordinator",
    "SlotOutcome",
    "STORE_ERROR",
]
