"""FastAPI application for the hotel back-office REST API.

This package provides REST endpoints for:
- Health checks
- Sign-in and guest accounts
- Rooms, availability and pricing
- Reservations and their lifecycle
- Dashboard metrics and staff reports

The application owns one HotelSession for its lifetime. It is created in
the lifespan handler, which also loads data, starts the auto-checkout
sweep and subscribes to change notifications.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hotel_api.dependencies import HotelSession
from hotel_api.exceptions import register_exception_handlers
from hotel_api.middleware import CorrelationIdMiddleware
from hotel_api.routes import (
    auth_router,
    availability_router,
    metrics_router,
    pricing_router,
    reservations_router,
    rooms_router,
)
from hotel_core.config import get_settings
from hotel_core.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_logging(settings.log_level)
    hotel = await HotelSession.create(settings)
    await hotel.start()
    app.state.hotel = hotel
    try:
        yield
    finally:
        await hotel.close()


app = FastAPI(
    title="Hotel Reservations API",
    description="REST API for room availability and the reservation lifecycle",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

app.include_router(auth_router, prefix="/api")
app.include_router(rooms_router, prefix="/api")
app.include_router(availability_router, prefix="/api")
app.include_router(pricing_router, prefix="/api")
app.include_router(reservations_router, prefix="/api")
app.include_router(metrics_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Root health check endpoint at /api/ping."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "hotel-api",
    }


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run("hotel_api.main:app", host=host, port=port, reload=True, reload_dirs=["src"])
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
