from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging
import os

from . import messages, models
from .database import engine
from .exceptions import AuthenticationError, KaraokeError, PersistenceError
from .routers import auth, booking_groups, booking_rooms, bookings, customers, payments, reports, rooms

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create tables
models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="Karaoke Booking System", version="1.0.0")

app.include_router(auth.router)
app.include_router(rooms.router)
app.include_router(customers.router)
app.include_router(bookings.router)
app.include_router(booking_groups.router)
app.include_router(booking_rooms.router)
app.include_router(payments.router)
app.include_router(reports.router)


@app.exception_handler(KaraokeError)
async def karaoke_error_handler(request: Request, exc: KaraokeError):
    """Map the error kind to a status code and the JSON envelope"""
    if isinstance(exc, PersistenceError):
        logger.error("Persistence failure on %s %s", request.method, request.url.path)
    else:
        logger.info("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "error": exc.kind},
        headers={"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are validation errors (400), not 422"""
    logger.info("Invalid request on %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": messages.INVALID_REQUEST, "error": "ValidationError"},
    )


@app.get("/api/health")
def health():
    """Kiểm tra trạng thái dịch vụ"""
    return {"success": True, "message": "OK"}
