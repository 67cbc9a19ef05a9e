"""slowapi rate limiting shared by both services."""
import logging

from fastapi import FastAPI, Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from utils.errors import RateLimited, error_response
from utils.settings import Settings

logger = logging.getLogger(__name__)


def build_limiter(settings: Settings) -> Limiter:
    """Limiter keyed by client address; disabled unless RATE_LIMIT is set."""
    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit] if settings.rate_limit else [],
        enabled=settings.rate_limit is not None,
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    # must stay sync: SlowAPIMiddleware calls it without awaiting
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)} on {request.url.path}")
    return error_response(f"{RateLimited.message}: {exc.detail}", RateLimited.status_code)


def install_rate_limiting(app: FastAPI, settings: Settings) -> None:
    app.state.limiter = build_limiter(settings)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
