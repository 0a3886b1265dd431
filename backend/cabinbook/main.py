import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .database import engine
from .errors import CabinBookingError
from .models import Base
from .redis_client import redis_client
from .routers import bookings, cabins, internal, locations

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create tables for a fresh database (alembic owns upgrades)."""
    url = engine.url
    if url.get_backend_name() == "sqlite" and url.database:
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    logger.info("Cabin booking API started")
    yield


app = FastAPI(title="Cabin Booking API", lifespan=lifespan)


@app.exception_handler(CabinBookingError)
async def booking_error_handler(request: Request, exc: CabinBookingError):
    if exc.status_code >= 500 or exc.status_code in (401, 403):
        logger.warning(f"{request.method} {request.url.path} → {exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


app.include_router(locations.router)
app.include_router(cabins.router)
app.include_router(bookings.router)
app.include_router(internal.router)


@app.get("/health")
def health():
    redis_ok = None
    if redis_client is not None:
        try:
            redis_ok = bool(redis_client.ping())
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
            redis_ok = False
    return {"status": "ok", "redis": redis_ok}
