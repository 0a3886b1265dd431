# backend/cabinbook/schemas/bookings.py

from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from .slots import ShiftName, SlotKeyIn

BookingStatusName = Literal["pending", "payment_pending", "confirmed", "cancelled"]


class BookingRead(BaseModel):
    id: int
    cabin_id: int
    professional_id: str

    date: date
    shift: ShiftName

    price: float
    status: BookingStatusName
    cancel_reason: Optional[str] = None
    cancelled_by: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BatchBookingRequest(BaseModel):
    selections: list[SlotKeyIn] = Field(min_length=1)


class SlotOutcomeRead(BaseModel):
    cabin_id: int
    date: date
    shift: ShiftName
    ok: bool
    booking: Optional[BookingRead] = None
    error: Optional[str] = None
    message: Optional[str] = None
    already_booked_by_you: bool = False


class BatchBookingResponse(BaseModel):
    status: Literal["all_succeeded", "partial_failure", "all_failed"]
    succeeded: int
    failed: int
    outcomes: list[SlotOutcomeRead]


class QuoteItemRead(BaseModel):
    cabin_id: int
    date: date
    shift: ShiftName
    price: float


class QuoteResponse(BaseModel):
    items: list[QuoteItemRead]
    subtotal: float
    service_fee: float
    total: float


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class BookingStatusUpdate(BaseModel):
    status: BookingStatusName
