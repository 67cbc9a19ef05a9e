"""Expenses service: FastAPI application owning the expense collection."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routes import router as api_router
from services.expenses_service import ExpenseStore
from utils.database import MongoHandle
from utils.errors import register_error_handlers, utc_timestamp
from utils.logging_config import RequestLoggingMiddleware, configure_logging
from utils.rate_limit import install_rate_limiting
from utils.settings import Settings, get_settings

SERVICE_NAME = "expenses-service"

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, handle: Optional[MongoHandle] = None) -> FastAPI:
    """Build the expenses service around an explicit database handle."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    handle = handle or MongoHandle(settings.mongodb_uri, settings.db_name, settings.collection_name)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: open the handle; requests get 503 while it stays closed
        await handle.open()
        app.state.expense_store = ExpenseStore(handle)
        logger.info(f"{SERVICE_NAME} ready (CORS origins: {', '.join(settings.cors_origins)})")
        yield
        # Shutdown
        app.state.expense_store = None
        handle.close()

    app = FastAPI(
        title="Expenses Service",
        description="CRUD API for expense records with date-range and category filters.",
        version="1.0.0",
        lifespan=lifespan,
    )
    register_error_handlers(app)

    # --- Middleware (last added runs first) ---
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
            "database": "connected" if handle.is_open else "unavailable",
        }

    app.include_router(api_router, prefix="/api", tags=["expenses"])
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=get_settings().expenses_port)
