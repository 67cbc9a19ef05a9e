"""Environment-driven settings shared by the expenses and analytics services."""
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv


load_dotenv()


@dataclass
class Settings:
    mongodb_uri: str = "mongodb://localhost:27017"
    db_name: str = "expense_tracker"
    collection_name: str = "expenses"
    expenses_port: int = 3001
    analytics_port: int = 3002
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])
    expenses_service_url: str = "http://localhost:3001"
    request_timeout: float = 10.0
    log_level: str = "INFO"
    rate_limit: Optional[str] = None


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw.isdigit() else default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        value = float(raw) if raw else default
    except ValueError:
        return default
    return value if value > 0 else default


def get_settings() -> Settings:
    raw_origins = os.getenv("CORS_ORIGIN", "").strip()
    cors_origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]

    return Settings(
        mongodb_uri=os.getenv("MONGODB_URI", "mongodb://localhost:27017"),
        db_name=os.getenv("DB_NAME", "expense_tracker"),
        collection_name=os.getenv("COLLECTION_NAME", "expenses"),
        expenses_port=_int_env("EXPENSES_PORT", 3001),
        analytics_port=_int_env("ANALYTICS_PORT", 3002),
        cors_origins=cors_origins or ["http://localhost:5173"],
        expenses_service_url=os.getenv("EXPENSES_SERVICE_URL", "http://localhost:3001").rstrip("/"),
        request_timeout=_float_env("REQUEST_TIMEOUT", 10.0),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        rate_limit=os.getenv("RATE_LIMIT", "").strip() or None,
    )
