"""Pydantic models for derived analytics (summaries and category trends)."""
from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field


class CategoryTotal(BaseModel):
    category: str
    total: float
    count: int


class Summary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_amount: float = Field(alias="totalAmount")
    count: int
    by_category: List[CategoryTotal] = Field(alias="byCategory")

    def total_for(self, category: str) -> float:
        """Total of ``category`` in this summary, 0 when it is not listed."""
        return next((entry.total for entry in self.by_category if entry.category == category), 0.0)


class TrendPeriod(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_date: str = Field(alias="from")
    to_date: str = Field(alias="to")
    total: float


class CategoryTrend(BaseModel):
    """Comparison of one category's total across two date ranges."""
    model_config = ConfigDict(populate_by_name=True)

    category: str
    period1: TrendPeriod
    period2: TrendPeriod
    change: float
    # "12.50" as text, or the integer 0 when the first period has no spending
    percent_change: Union[int, str] = Field(alias="percentChange")
