# backend/cabinbook/services/slots/store.py
"""
Read helpers over the relational store shared by the slot services.

Writes stay in the owning service; only lookups live here.
"""

from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from ...auth import Actor
from ...errors import NotFound, PermissionDenied, Unauthorized
from ...models.generated import Bookings, Cabins, Locations
from .keys import ACTIVE_STATUSES, SlotKey


def get_cabin(db: Session, cabin_id: int) -> Cabins:
    """Get cabin by ID or raise NotFound."""
    cabin = db.get(Cabins, cabin_id)
    if cabin is None:
        raise NotFound(f"Cabin {cabin_id} not found")
    return cabin


def get_location(db: Session, location_id: int) -> Locations:
    """Get location by ID or raise NotFound."""
    location = db.get(Locations, location_id)
    if location is None:
        raise NotFound(f"Location {location_id} not found")
    return location


def cabin_owner_id(db: Session, cabin: Cabins) -> str:
    location = cabin.location or db.get(Locations, cabin.location_id)
    return location.owner_id


def require_owner(db: Session, cabin: Cabins, actor: Actor) -> None:
    """Raise unless the actor owns the cabin's location."""
    if not actor.is_authenticated:
        raise Unauthorized("Authentication required")
    if cabin_owner_id(db, cabin) != actor.id:
        raise PermissionDenied(f"Actor {actor.id} does not own cabin {cabin.id}")


def creation_floor(cabin: Cabins) -> date:
    """
    Earliest bookable date for a cabin, as a local calendar date.

    created_at comes from CURRENT_TIMESTAMP (UTC, naive) while "today" is the
    local date.today(), so the timestamp is moved to local time first.
    """
    created = cabin.created_at
    if not isinstance(created, datetime):
        return created
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created.astimezone().date()


def get_active_booking(db: Session, key: SlotKey) -> Bookings | None:
    """Active (non-cancelled) booking occupying the slot, if any."""
    return (
        db.query(Bookings)
        .filter(
            Bookings.cabin_id == key.cabin_id,
            Bookings.date == key.date,
            Bookings.shift == key.shift.value,
            Bookings.status.in_(ACTIVE_STATUSES),
        )
        .first()
    )


def active_bookings_in_range(
    db: Session,
    cabin_ids: list[int],
    start: date,
    end: date,
) -> dict[tuple[int, date, str], Bookings]:
    """Active bookings keyed by (cabin_id, date, shift) for a date range."""
    if not cabin_ids:
        return {}

    rows = (
        db.query(Bookings)
        .filter(
            Bookings.cabin_id.in_(cabin_ids),
            Bookings.date >= start,
            Bookings.date <= end,
            Bookings.status.in_(ACTIVE_STATUSES),
        )
        .all()
    )
    return {(b.cabin_id, b.date, b.shift): b for b in rows}
