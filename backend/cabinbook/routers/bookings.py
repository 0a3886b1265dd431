# backend/cabinbook/routers/bookings.py
# Bookings are never deleted: DELETE = 405, cancellation is a state change

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import Actor, get_current_actor
from ..clock import get_today
from ..database import get_db
from ..models.generated import Bookings as DBBookings
from ..schemas.bookings import (
    BatchBookingRequest,
    BatchBookingResponse,
    BookingCancel,
    BookingRead,
    QuoteItemRead,
    QuoteResponse,
    SlotOutcomeRead,
)
from ..services.slots import (
    BookingConflictGuard,
    BookingRequestCoordinator,
    PricingResolver,
    SlotKey,
)
from ..services.slots.store import cabin_owner_id, get_cabin

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("/", response_model=list[BookingRead])
def list_bookings(
    cabin_id: int | None = None,
    professional_id: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    active_only: bool = False,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    Professionals see their own bookings; owners see bookings of their cabins.
    """
    if not actor.is_authenticated:
        raise HTTPException(status_code=401, detail="Authentication required")

    if cabin_id is not None:
        cabin = get_cabin(db, cabin_id)
        if cabin_owner_id(db, cabin) != actor.id:
            professional_id = actor.id
    else:
        professional_id = actor.id

    return BookingConflictGuard(db).list_bookings(
        cabin_id=cabin_id,
        professional_id=professional_id,
        date_from=date_from,
        date_to=date_to,
        active_only=active_only,
    )


@router.get("/{id}", response_model=BookingRead)
def get_booking(
    id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    obj = db.get(DBBookings, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    cabin = get_cabin(db, obj.cabin_id)
    if actor.id is None or actor.id not in (obj.professional_id, cabin_owner_id(db, cabin)):
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/quote", response_model=QuoteResponse)
def quote_selection(
    data: BatchBookingRequest,
    db: Session = Depends(get_db),
):
    """Subtotal, service fee and total for a selection, priced now."""
    keys = [SlotKey(s.cabin_id, s.date, s.shift) for s in data.selections]
    quote = PricingResolver(db).quote(keys)

    return QuoteResponse(
        items=[
            QuoteItemRead(
                cabin_id=key.cabin_id,
                date=key.date,
                shift=key.shift.value,
                price=price,
            )
            for key, price in quote["items"]
        ],
        subtotal=quote["subtotal"],
        service_fee=quote["service_fee"],
        total=quote["total"],
    )


@router.post("/batch", response_model=BatchBookingResponse)
def submit_batch(
    data: BatchBookingRequest,
    actor: Actor = Depends(get_current_actor),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """
    Reserve every selected slot independently.

    Always 200: per-slot outcomes carry successes and failures.
    """
    keys = [SlotKey(s.cabin_id, s.date, s.shift) for s in data.selections]
    result = BookingRequestCoordinator(db).submit_batch(keys, actor, today)

    return BatchBookingResponse(
        status=result.status.value,
        succeeded=len(result.succeeded),
        failed=len(result.failed),
        outcomes=[
            SlotOutcomeRead(
                cabin_id=o.key.cabin_id,
                date=o.key.date,
                shift=o.key.shift.value,
                ok=o.ok,
                booking=BookingRead.model_validate(o.booking) if o.booking else None,
                error=o.error,
                message=o.message,
                already_booked_by_you=o.already_booked_by_you,
            )
            for o in result.outcomes
        ],
    )


@router.post("/{id}/cancel", response_model=BookingRead)
def cancel_booking(
    id: int,
    data: BookingCancel | None = None,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    reason = data.reason if data else None
    return BookingConflictGuard(db).cancel(id, actor, reason)


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
