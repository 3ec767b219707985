"""Middleware and exception-handler registration."""

from fastapi import FastAPI

from edurewards.config import Settings
from edurewards.middleware.cors import setup_cors
from edurewards.middleware.error_handler import setup_error_handlers
from edurewards.middleware.logging import setup_logging
from edurewards.middleware.rate_limit import RateLimitMiddleware
from edurewards.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Wire logging, error handlers and the middleware stack.

    Effective order, outermost first: CORS, request id, rate limit.
    Starlette wraps in reverse-add order, hence the add order below.
    """
    setup_logging(settings)
    setup_error_handlers(app)

    rate_limit_options = {
        "requests_per_window": settings.rate_limit_requests,
        "reward_requests_per_window": settings.rate_limit_rewards,
        "window_seconds": settings.rate_limit_window_seconds,
    }
    app.add_middleware(RateLimitMiddleware, **rate_limit_options)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
