# backend/cabinbook/schemas/locations.py

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel


class LocationCreate(BaseModel):
    name: str
    city: Optional[str] = None

    model_config = {"from_attributes": True}


class LocationRead(BaseModel):
    id: int
    owner_id: str
    name: str
    city: Optional[str] = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ShiftAvailabilityRead(BaseModel):
    total_cabins: int
    available_cabins: int
    booked_cabins: int
    manually_closed_count: int
    min_price: Optional[float] = None

    model_config = {"from_attributes": True}


class DailyAvailabilityRead(BaseModel):
    """One day cell of the location calendar."""
    date: date
    morning: ShiftAvailabilityRead
    afternoon: ShiftAvailabilityRead
    evening: ShiftAvailabilityRead


class LocationAvailabilityResponse(BaseModel):
    location_id: int
    start_date: date
    end_date: date
    days: list[DailyAvailabilityRead]
