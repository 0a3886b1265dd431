# backend/cabinbook/errors.py
"""
Domain errors raised by the booking core.

Every error carries a stable ``code`` so callers (HTTP layer, batch
aggregation, UIs) can branch without parsing messages.

- not_found          resource/booking reference invalid
- unauthorized       actor lacks role or ownership
- slot_unavailable   slot not offered (past, pre-creation, disabled, closed)
- conflict           an active booking already occupies the slot
- invalid_argument   malformed price/date input
- past_date          mutation of a historical slot
- invalid_state      transition not allowed from the current state

None of these are retried by the core.
"""


class CabinBookingError(Exception):
    code = "error"
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class NotFound(CabinBookingError):
    code = "not_found"
    status_code = 404


class Unauthorized(CabinBookingError):
    code = "unauthorized"
    status_code = 401


class PermissionDenied(Unauthorized):
    """Authenticated, but not the owner of the thing being mutated."""
    code = "permission_denied"
    status_code = 403


class SlotUnavailable(CabinBookingError):
    code = "slot_unavailable"
    status_code = 409


class Conflict(CabinBookingError):
    code = "conflict"
    status_code = 409

    def __init__(self, message: str = "", holder_id: str | None = None):
        super().__init__(message)
        # professional holding the slot; lets callers spot their own booking
        self.holder_id = holder_id


class InvalidArgument(CabinBookingError):
    code = "invalid_argument"
    status_code = 422


class PastDateError(InvalidArgument):
    code = "past_date"


class InvalidState(CabinBookingError):
    code = "invalid_state"
    status_code = 409
