"""Analytics service: FastAPI application computing summaries from the expenses service."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from analytics_routes import router as api_router
from services.analytics_service import AnalyticsService
from utils.errors import register_error_handlers, utc_timestamp
from utils.expenses_client import ExpensesClient
from utils.logging_config import RequestLoggingMiddleware, configure_logging
from utils.rate_limit import install_rate_limiting
from utils.settings import Settings, get_settings

SERVICE_NAME = "analytics-service"

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """Build the analytics service; ``transport`` overrides how the expenses service is reached."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = ExpensesClient(settings.expenses_service_url, timeout=settings.request_timeout,
                                transport=transport)
        app.state.analytics_service = AnalyticsService(client)
        logger.info(f"{SERVICE_NAME} ready, reading from {settings.expenses_service_url} "
                    f"(timeout {settings.request_timeout}s)")
        yield
        app.state.analytics_service = None
        await client.aclose()

    app = FastAPI(
        title="Analytics Service",
        description="Category summaries and trends derived from the expenses service.",
        version="1.0.0",
        lifespan=lifespan,
    )
    register_error_handlers(app)

    install_rate_limiting(app, settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/health", tags=["system"])
    async def healthcheck():
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "timestamp": utc_timestamp(),
            "expensesServiceUrl": settings.expenses_service_url,
        }

    app.include_router(api_router, prefix="/api", tags=["analytics"])
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("analytics_main:app", host="0.0.0.0", port=get_settings().analytics_port)
