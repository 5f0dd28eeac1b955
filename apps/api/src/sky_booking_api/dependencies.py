"""FastAPI dependency injection providers."""

from __future__ import annotations

from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sky_booking_api.cache.redis_client import RedisKeyValueStore, get_redis_pool
from sky_booking_api.config import settings
from sky_booking_api.gateways import (
    LoggingMetricsSink,
    LoggingNotificationSender,
    SimulatedPaymentGateway,
    SimulatedProviderGateway,
)
from sky_booking_api.services.booking_service import FlightBookingService

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_booking_service() -> FlightBookingService:
    """Build a booking service over the shared Redis pool."""
    pool = await get_redis_pool()
    return FlightBookingService(
        store=RedisKeyValueStore(pool),
        provider=SimulatedProviderGateway(),
        payments=SimulatedPaymentGateway(),
        notifier=LoggingNotificationSender(),
        metrics=LoggingMetricsSink(),
        settings=settings,
    )


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)
    ],
) -> dict | None:
    """Decode a JWT and return its payload, or *None* if unauthenticated."""
    if credentials is None:
        return None
    try:
        return jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.PyJWTError:
        return None


async def require_user_id(
    user: Annotated[dict | None, Depends(get_current_user)],
) -> str:
    """Return the caller's user id; 401 when the token is absent or has no subject."""
    raw = None if user is None else user.get("sub") or user.get("user_id")
    if raw is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return str(raw)
