# backend/cabinbook/services/slots/keys.py
"""
Slot vocabulary: shifts, booking statuses and the SlotKey natural key.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterator

from ...errors import InvalidArgument


class Shift(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"

    @property
    def order(self) -> int:
        return SHIFTS.index(self)

    @classmethod
    def coerce(cls, value) -> "Shift":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidArgument(f"Unknown shift: {value!r}") from None


# Display order; bookings carry no ordering invariant
SHIFTS = (Shift.MORNING, Shift.AFTERNOON, Shift.EVENING)


class BookingStatus(str, Enum):
    PENDING = "pending"
    PAYMENT_PENDING = "payment_pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = (
    BookingStatus.PENDING.value,
    BookingStatus.PAYMENT_PENDING.value,
    BookingStatus.CONFIRMED.value,
)


@dataclass(frozen=True)
class SlotKey:
    cabin_id: int
    date: date
    shift: Shift

    def __post_init__(self):
        object.__setattr__(self, "shift", Shift.coerce(self.shift))

    @property
    def sort_key(self) -> tuple:
        return (self.cabin_id, self.date, self.shift.order)

    def as_dict(self) -> dict:
        return {
            "cabin_id": self.cabin_id,
            "date": self.date.isoformat(),
            "shift": self.shift.value,
        }

    def __str__(self) -> str:
        return f"{self.cabin_id}:{self.date.isoformat()}:{self.shift.value}"


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Dates in [start, end], inclusive. Empty when end < start."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
