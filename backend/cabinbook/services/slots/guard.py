# backend/cabinbook/services/slots/guard.py
"""
Booking conflict guard: the only writer of new booking rows.

reserve() checks, in order, short-circuiting on the first failure:
  1. cabin exists                      → NotFound
  2. actor is a professional           → Unauthorized
  3. slot is offered                   → SlotUnavailable
     (past date, before cabin creation, shift disabled, manually closed)
  4. no active booking for the slot    → Conflict

The insert itself is guarded by the partial unique index
uq_bookings_active_slot (cabin_id, date, shift WHERE status is active), so the
existence check and the insert are one atomic unit in the store. The read in
step 4 only turns the common case into a cheap early Conflict; a concurrent
winner is caught by the index and reported as Conflict as well.

No retries happen here. Retry policy belongs to the caller.
"""

import logging
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import Actor
from ...errors import (
    Conflict,
    InvalidArgument,
    InvalidState,
    NotFound,
    PermissionDenied,
    SlotUnavailable,
    Unauthorized,
)
from ...models.generated import Bookings
from ..events import booking_payload, emit_event
from .keys import ACTIVE_STATUSES, BookingStatus, Shift, SlotKey
from .overrides import AvailabilityOverrideStore
from .pricing import validate_price
from .store import cabin_owner_id, get_active_booking, get_cabin

logger = logging.getLogger(__name__)


# Transitions driven by the payment collaborator; cancellation has its own path
PAYMENT_TRANSITIONS = {
    BookingStatus.PENDING.value: {
        BookingStatus.PAYMENT_PENDING.value,
        BookingStatus.CONFIRMED.value,
    },
    BookingStatus.PAYMENT_PENDING.value: {
        BookingStatus.CONFIRMED.value,
    },
}


class BookingConflictGuard:
    """Decide and perform at-most-once reservations per SlotKey."""

    def __init__(self, db: Session, overrides: AvailabilityOverrideStore | None = None):
        self.db = db
        self.overrides = overrides or AvailabilityOverrideStore(db)

    # ── Reserve ──────────────────────────────────────────────────────────

    def reserve(
        self,
        key: SlotKey,
        actor: Actor,
        price: float,
        today: date | None = None,
    ) -> Bookings:
        """
        Reserve one slot for a professional.

        Returns:
            The created booking, status payment_pending, carrying `price`
            as its snapshot.
        """
        today = today or date.today()

        cabin = get_cabin(self.db, key.cabin_id)

        if not actor.is_professional:
            raise Unauthorized("Only professionals can book cabins")

        if not self.overrides.is_offered(key, today, cabin):
            raise SlotUnavailable(f"Slot {key} is not available")

        existing = get_active_booking(self.db, key)
        if existing is not None:
            raise Conflict(f"Slot {key} is already booked", holder_id=existing.professional_id)

        amount = validate_price(price)

        booking = Bookings(
            cabin_id=key.cabin_id,
            professional_id=actor.id,
            date=key.date,
            shift=key.shift.value,
            price=amount,
            status=BookingStatus.PAYMENT_PENDING.value,
        )
        self.db.add(booking)

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            # price and shift are validated above; only the active-slot index is left
            winner = get_active_booking(self.db, key)
            logger.info(f"Reserve lost race: slot={key} professional={actor.id}")
            raise Conflict(
                f"Slot {key} is already booked",
                holder_id=winner.professional_id if winner else None,
            ) from None

        self.db.refresh(booking)
        logger.info(
            f"Booking {booking.id} created: slot={key} professional={actor.id} "
            f"price={booking.price:.2f}"
        )
        emit_event("booking_created", booking_payload(booking))
        return booking

    # ── Cancel ───────────────────────────────────────────────────────────

    def cancel(
        self,
        booking_id: int,
        actor: Actor,
        reason: str | None = None,
    ) -> Bookings:
        """
        Cancel a booking, freeing its slot immediately.

        Allowed for the booking's professional and for the cabin owner.
        """
        booking = self.db.get(Bookings, booking_id)
        if booking is None:
            raise NotFound(f"Booking {booking_id} not found")

        if not actor.is_authenticated:
            raise Unauthorized("Authentication required")

        cabin = get_cabin(self.db, booking.cabin_id)
        if actor.id not in (booking.professional_id, cabin_owner_id(self.db, cabin)):
            raise PermissionDenied(f"Actor {actor.id} cannot cancel booking {booking_id}")

        if booking.status == BookingStatus.CANCELLED.value:
            raise InvalidState(f"Booking {booking_id} is already cancelled")

        booking.status = BookingStatus.CANCELLED.value
        booking.cancelled_by = actor.id
        booking.cancel_reason = reason
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"Booking {booking_id} cancelled by {actor.id}")
        emit_event("booking_cancelled", booking_payload(booking))
        return booking

    # ── Payment collaborator ─────────────────────────────────────────────

    def advance_status(self, booking_id: int, new_status: str) -> Bookings:
        """
        Move a booking forward in the payment lifecycle.

        pending → payment_pending → confirmed (pending → confirmed allowed).
        Re-applying the current status is a no-op.
        """
        try:
            target = BookingStatus(new_status).value
        except ValueError:
            raise InvalidArgument(f"Unknown booking status: {new_status!r}") from None

        booking = self.db.get(Bookings, booking_id)
        if booking is None:
            raise NotFound(f"Booking {booking_id} not found")

        if booking.status == target and target != BookingStatus.CANCELLED.value:
            return booking

        if target not in PAYMENT_TRANSITIONS.get(booking.status, set()):
            raise InvalidState(
                f"Booking {booking_id} cannot move from {booking.status} to {target}"
            )

        previous = booking.status
        booking.status = target
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"Booking {booking_id} status {previous} → {target}")
        emit_event("booking_status_changed", {**booking_payload(booking), "previous": previous})
        return booking

    # ── Read ─────────────────────────────────────────────────────────────

    def active_booking(self, key: SlotKey) -> Bookings | None:
        return get_active_booking(self.db, key)

    def list_bookings(
        self,
        cabin_id: int | None = None,
        professional_id: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        statuses: list[str] | None = None,
        active_only: bool = False,
    ) -> list[Bookings]:
        """Bookings filtered by cabin, professional and date range."""
        query = self.db.query(Bookings)

        if cabin_id is not None:
            query = query.filter(Bookings.cabin_id == cabin_id)
        if professional_id is not None:
            query = query.filter(Bookings.professional_id == professional_id)
        if date_from is not None:
            query = query.filter(Bookings.date >= date_from)
        if date_to is not None:
            query = query.filter(Bookings.date <= date_to)
        if active_only:
            query = query.filter(Bookings.status.in_(ACTIVE_STATUSES))
        elif statuses:
            query = query.filter(Bookings.status.in_(statuses))

        bookings = query.all()
        # shift column is text; order in python by display order
        return sorted(
            bookings,
            key=lambda b: (b.date, Shift(b.shift).order, b.cabin_id, b.id),
        )
