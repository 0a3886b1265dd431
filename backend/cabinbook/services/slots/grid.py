# backend/cabinbook/services/slots/grid.py
"""
Slot grid: the three-shift-per-day matrix for a cabin over a date range.

list_slots() only enumerates keys; it never decides bookability. The
rendered grid composes, per cell:
✓ default shift flags of the cabin
✓ manual closures
✓ active bookings
✓ resolved price (override or default)

Cell status precedence:
  booked   → an active booking holds the slot (owner sees the booking)
  past     → date before today
  disabled → shift not offered by default
  closed   → manually closed by the owner
  available
Dates before the cabin creation date never produce cells.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import InvalidArgument
from ...models.generated import Cabins
from .config import BookingConfig, get_booking_config
from .keys import SHIFTS, SlotKey, iter_dates
from .overrides import AvailabilityOverrideStore, shift_enabled
from .pricing import PricingResolver
from .store import active_bookings_in_range, creation_floor, get_cabin, get_location


@dataclass
class SlotCell:
    key: SlotKey
    status: str
    price: float
    booking_id: Optional[int] = None

    @property
    def is_bookable(self) -> bool:
        return self.status == "available"

    @property
    def can_toggle(self) -> bool:
        """Owner open/close control is only offered for unbooked, editable cells."""
        return self.status in ("available", "closed")


@dataclass
class ShiftSummary:
    total_cabins: int = 0
    available_cabins: int = 0
    booked_cabins: int = 0
    manually_closed_count: int = 0
    min_price: Optional[float] = None


class SlotGrid:
    def __init__(self, db: Session, config: BookingConfig | None = None):
        self.db = db
        self.config = config or get_booking_config()
        self.overrides = AvailabilityOverrideStore(db)
        self.pricing = PricingResolver(db, self.config)

    def _check_range(self, range_start: date, range_end: date) -> None:
        if (range_end - range_start).days > self.config.horizon_days:
            raise InvalidArgument(
                f"Date range cannot exceed {self.config.horizon_days} days"
            )

    @staticmethod
    def _keys_for(cabin: Cabins, range_start: date, range_end: date) -> list[SlotKey]:
        start = max(range_start, creation_floor(cabin))
        return [
            SlotKey(cabin.id, d, shift)
            for d in iter_dates(start, range_end)
            for shift in SHIFTS
        ]

    def list_slots(self, cabin_id: int, range_start: date, range_end: date) -> list[SlotKey]:
        """Ordered SlotKeys for [range_start, range_end], clipped at the creation date."""
        cabin = get_cabin(self.db, cabin_id)
        self._check_range(max(range_start, creation_floor(cabin)), range_end)
        return self._keys_for(cabin, range_start, range_end)

    def build_grid(
        self,
        cabin_id: int,
        range_start: date,
        range_end: date,
        today: date | None = None,
    ) -> list[SlotCell]:
        today = today or date.today()
        cabin = get_cabin(self.db, cabin_id)
        self._check_range(max(range_start, creation_floor(cabin)), range_end)
        keys = self._keys_for(cabin, range_start, range_end)
        if not keys:
            return []

        start, end = keys[0].date, keys[-1].date
        closed = self.overrides.closures_for([cabin.id], start, end)
        prices = self.pricing.overrides_for([cabin.id], start, end)
        booked = active_bookings_in_range(self.db, [cabin.id], start, end)

        return [self._cell(cabin, key, today, closed, prices, booked) for key in keys]

    def summarize_location(
        self,
        location_id: int,
        range_start: date,
        range_end: date,
        today: date | None = None,
    ) -> dict[date, dict[str, ShiftSummary]]:
        """
        Per date and shift counts across the active cabins of a location.

        A cabin counts towards a date only from its creation date on.
        """
        today = today or date.today()
        get_location(self.db, location_id)
        self._check_range(range_start, range_end)

        cabins = (
            self.db.query(Cabins)
            .filter(Cabins.location_id == location_id, Cabins.is_active.is_(True))
            .order_by(Cabins.id)
            .all()
        )
        ids = [c.id for c in cabins]
        closed = self.overrides.closures_for(ids, range_start, range_end)
        prices = self.pricing.overrides_for(ids, range_start, range_end)
        booked = active_bookings_in_range(self.db, ids, range_start, range_end)

        summary: dict[date, dict[str, ShiftSummary]] = {
            d: {s.value: ShiftSummary() for s in SHIFTS}
            for d in iter_dates(range_start, range_end)
        }

        for cabin in cabins:
            for key in self._keys_for(cabin, range_start, range_end):
                cell = self._cell(cabin, key, today, closed, prices, booked)
                bucket = summary[key.date][key.shift.value]
                bucket.total_cabins += 1
                if cell.status == "booked":
                    bucket.booked_cabins += 1
                elif cell.status == "closed":
                    bucket.manually_closed_count += 1
                elif cell.status == "available":
                    bucket.available_cabins += 1
                    if bucket.min_price is None or cell.price < bucket.min_price:
                        bucket.min_price = cell.price

        return summary

    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _cell(
        cabin: Cabins,
        key: SlotKey,
        today: date,
        closed: set,
        prices: dict,
        booked: dict,
    ) -> SlotCell:
        triple = (cabin.id, key.date, key.shift.value)
        price = prices.get(triple, cabin.default_price)
        booking = booked.get(triple)

        if booking is not None:
            return SlotCell(key, "booked", price, booking.id)
        if key.date < today:
            status = "past"
        elif not cabin.is_active or not shift_enabled(cabin, key.shift):
            status = "disabled"
        elif triple in closed:
            status = "closed"
        else:
            status = "available"
        return SlotCell(key, status, price)
