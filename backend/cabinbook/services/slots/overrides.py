# backend/cabinbook/services/slots/overrides.py
"""
Owner-controlled manual open/close state per (cabin, date, shift).

Manual closure is layered on top of the cabin's default per-shift flags and
is independent of booking occupancy. A booked slot's status comes from the
booking; its closure flag cannot be touched while the booking is active.

Composition:
  offered  = shift enabled by default
             AND NOT manually closed
             AND date >= cabin creation date
             AND date >= today
  bookable = offered AND NOT active booking
"""

import logging
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from ...auth import Actor
from ...errors import InvalidState, PastDateError
from ...models.generated import Cabins, ManualOverrides
from .keys import SlotKey, Shift
from .store import creation_floor, get_active_booking, get_cabin, require_owner

logger = logging.getLogger(__name__)


def shift_enabled(cabin: Cabins, shift: Shift) -> bool:
    """Default availability flag of the cabin for a shift."""
    return bool(getattr(cabin, f"{shift.value}_enabled"))


class AvailabilityOverrideStore:
    """Manual closure store backed by the manual_overrides table."""

    def __init__(self, db: Session):
        self.db = db

    # ── Read ─────────────────────────────────────────────────────────────

    def _get(self, key: SlotKey) -> ManualOverrides | None:
        return (
            self.db.query(ManualOverrides)
            .filter(
                ManualOverrides.cabin_id == key.cabin_id,
                ManualOverrides.date == key.date,
                ManualOverrides.shift == key.shift.value,
            )
            .first()
        )

    def is_manually_closed(self, key: SlotKey) -> bool:
        row = self._get(key)
        return bool(row and row.is_closed)

    def closures_for(self, cabin_ids: list[int], start: date, end: date) -> set[tuple[int, date, str]]:
        """Closed (cabin_id, date, shift) triples in a date range."""
        if not cabin_ids:
            return set()

        rows = (
            self.db.query(ManualOverrides)
            .filter(
                ManualOverrides.cabin_id.in_(cabin_ids),
                ManualOverrides.date >= start,
                ManualOverrides.date <= end,
                ManualOverrides.is_closed.is_(True),
            )
            .all()
        )
        return {(r.cabin_id, r.date, r.shift) for r in rows}

    def is_offered(self, key: SlotKey, today: date | None = None, cabin: Cabins | None = None) -> bool:
        """Slot is offered for booking, ignoring occupancy."""
        today = today or date.today()
        cabin = cabin or get_cabin(self.db, key.cabin_id)

        if not cabin.is_active:
            return False
        if key.date < today or key.date < creation_floor(cabin):
            return False
        if not shift_enabled(cabin, key.shift):
            return False
        return not self.is_manually_closed(key)

    def is_bookable(self, key: SlotKey, today: date | None = None) -> bool:
        """Full bookable predicate including occupancy."""
        return self.is_offered(key, today) and get_active_booking(self.db, key) is None

    # ── Write ────────────────────────────────────────────────────────────

    def set_manual_closure(
        self,
        key: SlotKey,
        closed: bool,
        actor: Actor,
        today: date | None = None,
    ) -> ManualOverrides:
        """
        Open or close a slot manually.

        Idempotent: setting the current value again is a no-op write.

        Raises:
            NotFound: unknown cabin
            Unauthorized / PermissionDenied: actor is not the cabin owner
            PastDateError: slot date is before today
            InvalidState: slot has an active booking
        """
        today = today or date.today()
        cabin = get_cabin(self.db, key.cabin_id)
        require_owner(self.db, cabin, actor)

        if key.date < today:
            raise PastDateError(f"Cannot change closure of past slot {key}")

        booking = get_active_booking(self.db, key)
        if booking is not None:
            raise InvalidState(
                f"Slot {key} has active booking {booking.id}; closure cannot be changed"
            )

        row = self._get(key)
        if row is None:
            row = ManualOverrides(
                cabin_id=key.cabin_id,
                date=key.date,
                shift=key.shift.value,
            )
            self.db.add(row)

        row.is_closed = closed
        row.updated_by = actor.id
        row.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(row)

        logger.info(
            f"Manual closure set: slot={key} closed={closed} by={actor.id}"
        )
        return row
