# backend/cabinbook/services/slots/coordinator.py
"""
Multi-slot booking submission.

A professional picks several date/shift cells and submits them at once.
Each selection is attempted exactly once, in input order, through the
conflict guard. Failures are isolated: one Conflict does not stop the rest.

Price per selection is resolved at submission time, not taken from what the
UI showed at selection time.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...auth import Actor
from ...errors import CabinBookingError, Conflict, InvalidArgument
from ...models.generated import Bookings
from .config import BookingConfig, get_booking_config
from .guard import BookingConflictGuard
from .keys import SlotKey
from .pricing import PricingResolver

logger = logging.getLogger(__name__)

# Outcome code for a slot whose attempt failed below the domain layer
STORE_ERROR = "store_error"


class BatchStatus(str, Enum):
    ALL_SUCCEEDED = "all_succeeded"
    PARTIAL_FAILURE = "partial_failure"
    ALL_FAILED = "all_failed"


@dataclass
class SlotOutcome:
    key: SlotKey
    booking: Optional[Bookings] = None
    error: Optional[str] = None  # code from errors.py, or STORE_ERROR
    message: Optional[str] = None
    already_booked_by_you: bool = False

    @property
    def ok(self) -> bool:
        return self.booking is not None


@dataclass
class BatchResult:
    outcomes: list[SlotOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[SlotOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[SlotOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def status(self) -> BatchStatus:
        if not self.failed:
            return BatchStatus.ALL_SUCCEEDED
        if not self.succeeded:
            return BatchStatus.ALL_FAILED
        return BatchStatus.PARTIAL_FAILURE


class BookingRequestCoordinator:
    """Submit a batch of slot selections, one independent reserve per slot."""

    def __init__(
        self,
        db: Session,
        guard: BookingConflictGuard | None = None,
        pricing: PricingResolver | None = None,
        config: BookingConfig | None = None,
    ):
        self.db = db
        self.config = config or get_booking_config()
        self.guard = guard or BookingConflictGuard(db)
        self.pricing = pricing or PricingResolver(db, self.config)

    def submit_batch(
        self,
        selections: list[SlotKey],
        actor: Actor,
        today: date | None = None,
    ) -> BatchResult:
        if not selections:
            raise InvalidArgument("At least one slot must be selected")
        if len(selections) > self.config.max_batch_size:
            raise InvalidArgument(
                f"Too many slots in one submission: {len(selections)} > {self.config.max_batch_size}"
            )

        today = today or date.today()
        result = BatchResult()

        for key in selections:
            result.outcomes.append(self._attempt(key, actor, today))

        logger.info(
            f"Batch submitted by {actor.id}: {len(result.succeeded)}/{len(selections)} "
            f"reserved ({result.status.value})"
        )
        return result

    def _attempt(self, key: SlotKey, actor: Actor, today: date) -> SlotOutcome:
        try:
            price = self.pricing.resolve_price(key)
            booking = self.guard.reserve(key, actor, price, today)
        except Conflict as e:
            mine = actor.is_authenticated and e.holder_id == actor.id
            return SlotOutcome(
                key=key,
                error=e.code,
                message=e.message,
                already_booked_by_you=mine,
            )
        except CabinBookingError as e:
            return SlotOutcome(key=key, error=e.code, message=e.message)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Reserve failed in store: slot={key} professional={actor.id}: {e}")
            return SlotOutcome(key=key, error=STORE_ERROR, message="Slot could not be reserved, try again")

        return SlotOutcome(key=key, booking=booking)
