"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sky_booking_api.cache.redis_client import close_redis, init_redis
from sky_booking_api.config import settings
from sky_booking_api.routers import bookings
from sky_booking_api.schemas.common import ErrorResponse
from sky_booking_core.schemas import BookingError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from fastapi import Request

@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage startup / shutdown resources."""
    await init_redis(settings.redis_url)
    yield
    await close_redis()


async def _booking_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, BookingError)
    detail = exc.to_detail()
    body = ErrorResponse(detail=detail.message, code=str(detail.kind), details=detail.details)
    return JSONResponse(status_code=detail.status_code, content=body.model_dump(mode="json"))


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Sky Booking API",
        version="0.1.0",
        lifespan=_lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(BookingError, _booking_error_handler)

    app.include_router(bookings.router, prefix="/api/v1")
    return app


app = create_app()
