# backend/cabinbook/routers/cabins.py
# Cabin CRUD (owner), slot grid (public), closures and prices (owner)
# DELETE = soft-delete (is_active)

from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..auth import Actor, get_current_actor
from ..clock import get_today
from ..database import get_db
from ..models.generated import Cabins as DBCabins
from ..schemas.cabins import CabinCreate, CabinRead, CabinUpdate
from ..schemas.slots import (
    ManualClosureRead,
    ManualClosureUpdate,
    PriceOverrideBatchUpdate,
    PriceOverrideRead,
    PriceOverrideUpdate,
    ShiftName,
    SlotCellRead,
    SlotGridResponse,
)
from ..services.slots import (
    AvailabilityOverrideStore,
    PricingResolver,
    Shift,
    SlotGrid,
    SlotKey,
)
from ..services.slots.store import get_cabin, get_location, require_owner

router = APIRouter(prefix="/cabins", tags=["cabins"])


@router.get("/", response_model=list[CabinRead])
def list_cabins(location_id: int | None = None, db: Session = Depends(get_db)):
    query = db.query(DBCabins).filter(DBCabins.is_active.is_(True))
    if location_id is not None:
        query = query.filter(DBCabins.location_id == location_id)
    return query.order_by(DBCabins.id).all()


@router.get("/{id}", response_model=CabinRead)
def get_cabin_by_id(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBCabins, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/", response_model=CabinRead, status_code=status.HTTP_201_CREATED)
def create_cabin(
    data: CabinCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    location = get_location(db, data.location_id)
    if location.owner_id != actor.id:
        raise HTTPException(status_code=403, detail="Only the location owner can add cabins")

    obj = DBCabins(**data.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.patch("/{id}", response_model=CabinRead)
def update_cabin(
    id: int,
    data: CabinUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    obj = get_cabin(db, id)
    require_owner(db, obj, actor)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    return obj


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_cabin(
    id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    obj = get_cabin(db, id)
    require_owner(db, obj, actor)

    obj.is_active = False
    db.commit()


# ── Slot grid ────────────────────────────────────────────────────────────


@router.get("/{id}/slots", response_model=SlotGridResponse)
def get_cabin_slots(
    id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """Three-shift grid for a cabin; defaults to the next 30 days."""
    start_date = start_date or today
    end_date = end_date or start_date + timedelta(days=30)

    cells = SlotGrid(db).build_grid(id, start_date, end_date, today)

    return SlotGridResponse(
        cabin_id=id,
        start_date=start_date,
        end_date=end_date,
        slots=[
            SlotCellRead(
                date=cell.key.date,
                shift=cell.key.shift.value,
                status=cell.status,
                price=cell.price,
                booking_id=cell.booking_id,
                can_toggle=cell.can_toggle,
            )
            for cell in cells
        ],
    )


# ── Owner controls ───────────────────────────────────────────────────────


@router.put("/{id}/closures", response_model=ManualClosureRead)
def set_manual_closure(
    id: int,
    data: ManualClosureUpdate,
    actor: Actor = Depends(get_current_actor),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    key = SlotKey(id, data.date, data.shift)
    return AvailabilityOverrideStore(db).set_manual_closure(key, data.closed, actor, today)


@router.put("/{id}/prices", response_model=PriceOverrideRead)
def set_price_override(
    id: int,
    data: PriceOverrideUpdate,
    actor: Actor = Depends(get_current_actor),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    key = SlotKey(id, data.date, data.shift)
    return PricingResolver(db).set_price_override(key, data.price, actor, today)


@router.put("/{id}/prices/batch", response_model=list[PriceOverrideRead])
def set_price_overrides_batch(
    id: int,
    data: PriceOverrideBatchUpdate,
    actor: Actor = Depends(get_current_actor),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    return PricingResolver(db).set_price_overrides_batch(
        id,
        data.dates,
        [Shift(s) for s in data.shifts],
        data.price,
        actor,
        today,
    )


@router.delete("/{id}/prices", status_code=status.HTTP_204_NO_CONTENT)
def clear_price_override(
    id: int,
    target_date: date = Query(..., alias="date"),
    shift: ShiftName = Query(...),
    actor: Actor = Depends(get_current_actor),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    key = SlotKey(id, target_date, shift)
    if not PricingResolver(db).clear_price_override(key, actor, today):
        raise HTTPException(status_code=404, detail="Not found")
