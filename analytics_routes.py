"""API Routes for analytics"""
import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request

from services.analytics_service import AnalyticsService
from services.expense_query import build_filter, parse_category_param
from utils.errors import MissingParameters, ServiceError

router = APIRouter()
logger = logging.getLogger(__name__)


def get_analytics_service(request: Request) -> AnalyticsService:
    """Dependency to get the analytics service from the application state."""
    service = getattr(request.app.state, "analytics_service", None)
    if service is None:
        raise ServiceError("Analytics service is not ready", status_code=503)
    return service


AnalyticsServiceDep = Annotated[AnalyticsService, Depends(get_analytics_service)]


@router.get("/summary", summary="Expense Summary",
            description="Total and per-category breakdown of the expenses matching the optional filters.")
async def get_summary(
    service: AnalyticsServiceDep,
    from_param: Optional[str] = Query(None, alias="from", description="Start date (YYYY-MM-DD)."),
    to_param: Optional[str] = Query(None, alias="to", description="End date (YYYY-MM-DD)."),
    category: Optional[str] = Query(None, description="Restrict to one category."),
) -> Dict[str, Any]:
    # reject malformed filters here instead of relaying them upstream
    filters = build_filter(from_param, to_param, category)
    echoed = filters.to_query_params()
    logger.info(f"Calculating summary with filters: {echoed or 'none'}")
    summary = await service.get_summary(filters)
    return {
        "success": True,
        "filters": echoed,
        "data": summary.model_dump(mode="json", by_alias=True),
    }


@router.get("/category-trend/{category}", summary="Category Trend",
            description="Compares one category's total between two date ranges.")
async def get_category_trend(
    category: str,
    service: AnalyticsServiceDep,
    from1: Optional[str] = Query(None),
    to1: Optional[str] = Query(None),
    from2: Optional[str] = Query(None),
    to2: Optional[str] = Query(None),
) -> Dict[str, Any]:
    if not (from1 and to1 and from2 and to2):
        raise MissingParameters()
    parse_category_param(category)
    period1 = build_filter(from1, to1, from_name="from1", to_name="to1")
    period2 = build_filter(from2, to2, from_name="from2", to_name="to2")

    trend = await service.get_category_trend(
        category, period1.from_date, period1.to_date, period2.from_date, period2.to_date
    )
    return {"success": True, "data": trend.model_dump(mode="json", by_alias=True)}
