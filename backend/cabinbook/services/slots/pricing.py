# backend/cabinbook/services/slots/pricing.py
"""
Per-slot price resolution.

Rule: a price override for the exact (cabin, date, shift) wins; otherwise the
cabin's default price applies. The default is shift-agnostic: one price for
all three shifts unless overridden per slot.

Booking.price is a snapshot and is never consulted here, so changing an
override never reprices existing bookings.
"""

import logging
import math
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from ...auth import Actor
from ...errors import InvalidArgument, PastDateError
from ...models.generated import Cabins, PriceOverrides
from .config import BookingConfig, get_booking_config
from .keys import SlotKey, Shift
from .store import get_cabin, require_owner

logger = logging.getLogger(__name__)


def validate_price(price) -> float:
    """Price rounded to cents; must stay positive after rounding."""
    try:
        value = round(float(price), 2)
    except (TypeError, ValueError):
        raise InvalidArgument(f"Price must be a number, got {price!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise InvalidArgument(f"Price must be at least 0.01, got {price!r}")
    return value


class PricingResolver:
    """Resolve and edit effective slot prices."""

    def __init__(self, db: Session, config: BookingConfig | None = None):
        self.db = db
        self.config = config or get_booking_config()

    def _get(self, key: SlotKey) -> PriceOverrides | None:
        return (
            self.db.query(PriceOverrides)
            .filter(
                PriceOverrides.cabin_id == key.cabin_id,
                PriceOverrides.date == key.date,
                PriceOverrides.shift == key.shift.value,
            )
            .first()
        )

    # ── Read ─────────────────────────────────────────────────────────────

    def resolve_price(self, key: SlotKey, cabin: Cabins | None = None) -> float:
        """Effective price for a slot."""
        cabin = cabin or get_cabin(self.db, key.cabin_id)
        override = self._get(key)
        if override is not None:
            return override.price
        return cabin.default_price

    def overrides_for(
        self,
        cabin_ids: list[int],
        start: date,
        end: date,
    ) -> dict[tuple[int, date, str], float]:
        """Price overrides keyed by (cabin_id, date, shift) for a date range."""
        if not cabin_ids:
            return {}

        rows = (
            self.db.query(PriceOverrides)
            .filter(
                PriceOverrides.cabin_id.in_(cabin_ids),
                PriceOverrides.date >= start,
                PriceOverrides.date <= end,
            )
            .all()
        )
        return {(r.cabin_id, r.date, r.shift): r.price for r in rows}

    def quote(self, keys: list[SlotKey]) -> dict:
        """
        Price a selection before submission.

        Returns:
            {"items": [(SlotKey, price), ...], "subtotal", "service_fee", "total"}
        """
        cabins: dict[int, Cabins] = {}
        items = []
        for key in keys:
            if key.cabin_id not in cabins:
                cabins[key.cabin_id] = get_cabin(self.db, key.cabin_id)
            items.append((key, self.resolve_price(key, cabins[key.cabin_id])))

        subtotal = round(sum(price for _, price in items), 2)
        fee = round(subtotal * self.config.service_fee_rate, 2) if items else 0.0
        return {
            "items": items,
            "subtotal": subtotal,
            "service_fee": fee,
            "total": round(subtotal + fee, 2),
        }

    # ── Write ────────────────────────────────────────────────────────────

    def _check_editable(self, key: SlotKey, today: date) -> None:
        if key.date < today:
            raise PastDateError(f"Cannot change price of past slot {key}")

    def _upsert(self, key: SlotKey, price: float, actor: Actor) -> PriceOverrides:
        row = self._get(key)
        if row is None:
            row = PriceOverrides(
                cabin_id=key.cabin_id,
                date=key.date,
                shift=key.shift.value,
            )
            self.db.add(row)
        row.price = price
        row.updated_by = actor.id
        row.updated_at = datetime.now(timezone.utc)
        return row

    def set_price_override(
        self,
        key: SlotKey,
        new_price,
        actor: Actor,
        today: date | None = None,
    ) -> PriceOverrides:
        """
        Upsert a price override for one slot.

        Raises:
            InvalidArgument: price below 0.01 once rounded to cents
            PastDateError: slot date is before today (today is editable)
            NotFound / Unauthorized / PermissionDenied: cabin/ownership checks
        """
        today = today or date.today()
        price = validate_price(new_price)
        self._check_editable(key, today)

        cabin = get_cabin(self.db, key.cabin_id)
        require_owner(self.db, cabin, actor)

        row = self._upsert(key, price, actor)
        self.db.commit()
        self.db.refresh(row)

        logger.info(f"Price override set: slot={key} price={price:.2f} by={actor.id}")
        return row

    def set_price_overrides_batch(
        self,
        cabin_id: int,
        dates: list[date],
        shifts: list[Shift],
        new_price,
        actor: Actor,
        today: date | None = None,
    ) -> list[PriceOverrides]:
        """
        Apply one price to every date x shift pair.

        All pairs are validated before anything is written; one past date
        rejects the whole batch.
        """
        today = today or date.today()
        price = validate_price(new_price)
        if not dates or not shifts:
            raise InvalidArgument("At least one date and one shift are required")

        keys = [
            SlotKey(cabin_id, d, Shift.coerce(s))
            for d in sorted(set(dates))
            for s in sorted({Shift.coerce(s) for s in shifts}, key=lambda s: s.order)
        ]
        for key in keys:
            self._check_editable(key, today)

        cabin = get_cabin(self.db, cabin_id)
        require_owner(self.db, cabin, actor)

        rows = [self._upsert(key, price, actor) for key in keys]
        self.db.commit()

        logger.info(
            f"Batch price override: cabin={cabin_id} slots={len(rows)} "
            f"price={price:.2f} by={actor.id}"
        )
        return rows

    def clear_price_override(
        self,
        key: SlotKey,
        actor: Actor,
        today: date | None = None,
    ) -> bool:
        """Remove an override, reverting the slot to the default price."""
        today = today or date.today()
        self._check_editable(key, today)

        cabin = get_cabin(self.db, key.cabin_id)
        require_owner(self.db, cabin, actor)

        row = self._get(key)
        if row is None:
            return False

        self.db.delete(row)
        self.db.commit()
        logger.info(f"Price override cleared: slot={key} by={actor.id}")
        return True
