# backend/cabinbook/schemas/slots.py
"""
Pydantic schemas for slot grid, closures and price overrides.
"""

from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

ShiftName = Literal["morning", "afternoon", "evening"]
CellStatus = Literal["available", "booked", "closed", "disabled", "past"]


class SlotKeyIn(BaseModel):
    """One selected cell (cabin, date, shift)."""
    cabin_id: int
    date: date
    shift: ShiftName


class SlotCellRead(BaseModel):
    date: date
    shift: ShiftName
    status: CellStatus
    price: float
    booking_id: Optional[int] = None
    can_toggle: bool = Field(description="Owner may open/close this cell")


class SlotGridResponse(BaseModel):
    cabin_id: int
    start_date: date
    end_date: date
    slots: list[SlotCellRead]


class ManualClosureUpdate(BaseModel):
    date: date
    shift: ShiftName
    closed: bool


class ManualClosureRead(BaseModel):
    cabin_id: int
    date: date
    shift: ShiftName
    is_closed: bool
    updated_by: Optional[str] = None
    updated_at: datetime

    model_config = {"from_attributes": True}


class PriceOverrideUpdate(BaseModel):
    date: date
    shift: ShiftName
    price: float


class PriceOverrideBatchUpdate(BaseModel):
    dates: list[date] = Field(min_length=1)
    shifts: list[ShiftName] = Field(min_length=1)
    price: float


class PriceOverrideRead(BaseModel):
    cabin_id: int
    date: date
    shift: ShiftName
    price: float
    updated_by: Optional[str] = None
    updated_at: datetime

    model_config = {"from_attributes": True}
