"""Turns raw query-string parameters into a validated ``ExpenseFilter``.

All checks here run before any store access, so malformed reads never reach
the database.
"""
import datetime as dt
import logging
import re
from typing import List, Optional, Protocol, Tuple

from models.expense import CATEGORIES, Expense, ExpenseFilter
from utils.errors import InvalidDateFormat, InvalidDateRange, InvalidFilter

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ExpenseLister(Protocol):
    async def list(self, filters: Optional[ExpenseFilter] = None) -> List[Expense]:
        ...


def parse_date_param(name: str, value: Optional[str]) -> Optional[dt.date]:
    """Parse a ``YYYY-MM-DD`` parameter; empty or missing values are ``None``."""
    if not value:
        return None
    if not DATE_PATTERN.match(value):
        raise InvalidDateFormat(name)
    try:
        return dt.date.fromisoformat(value)
    except ValueError as exc:
        # matches the pattern but is not a calendar date, e.g. 2024-02-30
        raise InvalidDateFormat(name) from exc


def parse_category_param(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    if value not in CATEGORIES:
        raise InvalidFilter()
    return value


def build_filter(from_param: Optional[str] = None, to_param: Optional[str] = None,
                 category: Optional[str] = None, from_name: str = "from",
                 to_name: str = "to") -> ExpenseFilter:
    from_date = parse_date_param(from_name, from_param)
    to_date = parse_date_param(to_name, to_param)
    if from_date is not None and to_date is not None and from_date > to_date:
        raise InvalidDateRange()
    return ExpenseFilter(
        from_date=from_date,
        to_date=to_date,
        category=parse_category_param(category),
    )


async def query_expenses(store: ExpenseLister, from_param: Optional[str] = None,
                         to_param: Optional[str] = None,
                         category: Optional[str] = None) -> Tuple[List[Expense], int]:
    """Validate the parameters, then return the store's listing and its size."""
    filters = build_filter(from_param, to_param, category)
    logger.info(f"Querying expenses with filters {filters.to_query_params() or 'none'}")
    expenses = await store.list(filters)
    return expenses, len(expenses)
