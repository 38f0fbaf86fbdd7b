"""HTTP middleware stack.

Starlette runs middleware in reverse registration order. The stack, from
the outside in: CORS, request id, rate limit, then the exception handlers
around the routes. CORS sits outermost so 429 and 500 responses still carry
the CORS headers the dashboard needs to read them.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from myescrow.config import Settings
from myescrow.middleware.error_handler import setup_error_handlers
from myescrow.middleware.logging import setup_logging
from myescrow.middleware.rate_limit import RateLimitMiddleware
from myescrow.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    setup_logging(settings)
    setup_error_handlers(app)

    if settings.rate_limit_requests > 0:
        app.add_middleware(
            RateLimitMiddleware,
            requests_per_window=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER, "X-RateLimit-Remaining", "X-RateLimit-Limit", "Retry-After"],
    )
