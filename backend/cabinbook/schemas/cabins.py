# backend/cabinbook/schemas/cabins.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class CabinCreate(BaseModel):
    location_id: int
    name: str
    description: Optional[str] = None
    default_price: float = Field(ge=0.01)

    morning_enabled: bool = True
    afternoon_enabled: bool = True
    evening_enabled: bool = True

    model_config = {"from_attributes": True}


class CabinUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    default_price: Optional[float] = Field(default=None, ge=0.01)
    morning_enabled: Optional[bool] = None
    afternoon_enabled: Optional[bool] = None
    evening_enabled: Optional[bool] = None
    is_active: Optional[bool] = None

    model_config = {"from_attributes": True}


class CabinRead(BaseModel):
    id: int
    location_id: int
    name: str
    description: Optional[str] = None
    default_price: float

    morning_enabled: bool
    afternoon_enabled: bool
    evening_enabled: bool
    is_active: bool

    created_at: datetime

    model_config = {"from_attributes": True}
