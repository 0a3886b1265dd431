# backend/cabinbook/routers/locations.py
# Owners create locations; availability summary is public

from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import Actor, get_current_actor
from ..clock import get_today
from ..database import get_db
from ..models.generated import Locations as DBLocations
from ..schemas.locations import (
    DailyAvailabilityRead,
    LocationAvailabilityResponse,
    LocationCreate,
    LocationRead,
    ShiftAvailabilityRead,
)
from ..services.slots import SlotGrid, get_booking_config

router = APIRouter(prefix="/locations", tags=["locations"])


@router.get("/", response_model=list[LocationRead])
def list_locations(db: Session = Depends(get_db)):
    return (
        db.query(DBLocations)
        .filter(DBLocations.is_active.is_(True))
        .all()
    )


@router.get("/{id}", response_model=LocationRead)
def get_location(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBLocations, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/", response_model=LocationRead, status_code=status.HTTP_201_CREATED)
def create_location(
    data: LocationCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    if not actor.is_owner:
        raise HTTPException(status_code=403, detail="Only owners can create locations")

    obj = DBLocations(owner_id=actor.id, **data.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.get("/{id}/availability", response_model=LocationAvailabilityResponse)
def get_location_availability(
    id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """Per-day, per-shift cabin counts for the location calendar."""
    config = get_booking_config()
    start_date = start_date or today
    end_date = end_date or start_date + timedelta(days=30)
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")

    summary = SlotGrid(db, config).summarize_location(id, start_date, end_date, today)

    days = [
        DailyAvailabilityRead(
            date=day,
            **{
                shift: ShiftAvailabilityRead.model_validate(bucket)
                for shift, bucket in shifts.items()
            },
        )
        for day, shifts in summary.items()
    ]
    return LocationAvailabilityResponse(
        location_id=id,
        start_date=start_date,
        end_date=end_date,
        days=days,
    )
