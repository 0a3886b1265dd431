# backend/cabinbook/routers/internal.py
"""
Internal API endpoints for trusted consumers.

Called directly by the payment collaborator, never exposed through the
gateway proxy.

Access: localhost only
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.bookings import BookingRead, BookingStatusUpdate
from ..services.slots import BookingConflictGuard

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internal", tags=["internal"])

LOCAL_HOSTS = ("127.0.0.1", "localhost", "::1")


def require_local(request: Request) -> None:
    client_host = request.client.host if request.client else None
    if client_host not in LOCAL_HOSTS:
        logger.warning(f"Internal endpoint called from non-localhost: {client_host}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Internal endpoints are only accessible from localhost",
        )


@router.post(
    "/bookings/{id}/status",
    response_model=BookingRead,
    dependencies=[Depends(require_local)],
)
def update_booking_status(
    id: int,
    data: BookingStatusUpdate,
    db: Session = Depends(get_db),
):
    """Payment lifecycle transition (pending → payment_pending → confirmed)."""
    return BookingConflictGuard(db).advance_status(id, data.status)
