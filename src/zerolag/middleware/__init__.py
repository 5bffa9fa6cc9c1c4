"""Middleware registration."""

from fastapi import FastAPI

from zerolag.config import Settings
from zerolag.middleware.cors import setup_cors
from zerolag.middleware.error_handler import setup_error_handlers
from zerolag.middleware.logging import setup_logging
from zerolag.middleware.rate_limit import RateLimitMiddleware
from zerolag.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette runs middleware in reverse-add order (last added = outermost).
    CORS stays outermost so 429 responses from the rate limiter carry CORS headers.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
