"""Service layer for derived analytics: category summaries and trends.

Nothing here touches the database. Expense records come from an
``ExpenseSource`` (in production the HTTP ``ExpensesClient``) and every
summary is recomputed from fresh data on each call.
"""
import asyncio
import datetime as dt
import logging
from decimal import Decimal
from typing import Dict, List, Protocol, Sequence, Union

from models.expense import CATEGORIES, Expense, ExpenseFilter
from models.summary import CategoryTotal, CategoryTrend, Summary, TrendPeriod
from utils.money import quantize_cents, to_decimal

logger = logging.getLogger(__name__)


class ExpenseSource(Protocol):
    async def fetch_expenses(self, filters: ExpenseFilter) -> List[Expense]:
        ...


def calculate_summary(expenses: Sequence[Expense]) -> Summary:
    """Reduce records into a grand total and one entry per category.

    Buckets are created in first-seen order, absent categories are appended
    in declaration order, and the stable sort by total (descending) keeps
    that order among equal totals. Totals are rounded half away from zero.
    """
    if not expenses:
        return Summary(
            total_amount=0,
            count=0,
            by_category=[CategoryTotal(category=category, total=0, count=0) for category in CATEGORIES],
        )

    grand_total = Decimal("0")
    buckets: Dict[str, Dict[str, Union[Decimal, int]]] = {}
    for expense in expenses:
        amount = to_decimal(expense.amount)
        grand_total += amount
        bucket = buckets.setdefault(expense.category.value, {"total": Decimal("0"), "count": 0})
        bucket["total"] += amount
        bucket["count"] += 1

    for category in CATEGORIES:
        buckets.setdefault(category, {"total": Decimal("0"), "count": 0})

    ordered = sorted(buckets.items(), key=lambda item: item[1]["total"], reverse=True)
    return Summary(
        total_amount=float(quantize_cents(grand_total)),
        count=len(expenses),
        by_category=[
            CategoryTotal(category=category, total=float(quantize_cents(bucket["total"])), count=bucket["count"])
            for category, bucket in ordered
        ],
    )


def percent_change(total1: float, total2: float) -> Union[int, str]:
    """Relative change as text with two decimals; the literal 0 for a zero baseline."""
    if total1 <= 0:
        return 0
    change = to_decimal(total2) - to_decimal(total1)
    return str(quantize_cents(change / to_decimal(total1) * 100))


class AnalyticsService:
    def __init__(self, source: ExpenseSource):
        self._source = source

    async def get_summary(self, filters: ExpenseFilter) -> Summary:
        expenses = await self._source.fetch_expenses(filters)
        summary = calculate_summary(expenses)
        logger.info(f"Summary over {summary.count} expenses: total {summary.total_amount:.2f}")
        return summary

    async def get_category_trend(self, category: str, from1: dt.date, to1: dt.date,
                                 from2: dt.date, to2: dt.date) -> CategoryTrend:
        """Compare ``category`` totals across two ranges.

        Both summaries are fetched concurrently; if either fetch fails the
        error propagates and no partial trend is produced.
        """
        summary1, summary2 = await asyncio.gather(
            self.get_summary(ExpenseFilter(from_date=from1, to_date=to1, category=category)),
            self.get_summary(ExpenseFilter(from_date=from2, to_date=to2, category=category)),
        )
        total1 = summary1.total_for(category)
        total2 = summary2.total_for(category)
        change = float(quantize_cents(to_decimal(total2) - to_decimal(total1)))

        return CategoryTrend(
            category=category,
            period1=TrendPeriod(from_date=from1.isoformat(), to_date=to1.isoformat(), total=total1),
            period2=TrendPeriod(from_date=from2.isoformat(), to_date=to2.isoformat(), total=total2),
            change=change,
            percent_change=percent_change(total1, total2),
        )
