"""Pydantic models for Expense data"""
import datetime as dt
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Category(str, Enum):
    """Closed set of expense categories, in declaration order."""
    FOOD = "Food"
    TRANSPORT = "Transport"
    SHOPPING = "Shopping"
    BILLS = "Bills"
    OTHER = "Other"


CATEGORIES: List[str] = [category.value for category in Category]

MUTABLE_FIELDS = ("title", "amount", "category", "date", "notes")


class Expense(BaseModel):
    """
    A single recorded spending event as stored by the expenses service.
    """
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: Optional[str] = None
    title: str
    amount: float
    category: Category
    date: dt.date
    notes: str = ""
    created_at: Optional[dt.datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[dt.datetime] = Field(default=None, alias="updatedAt")

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ExpenseFilter(BaseModel):
    """Optional date-range and category constraints for a read."""
    from_date: Optional[dt.date] = None
    to_date: Optional[dt.date] = None
    category: Optional[str] = None

    def to_query_params(self) -> Dict[str, str]:
        """Render as the query string understood by ``GET /api/expenses``."""
        params: Dict[str, str] = {}
        if self.from_date is not None:
            params["from"] = self.from_date.isoformat()
        if self.to_date is not None:
            params["to"] = self.to_date.isoformat()
        if self.category is not None:
            params["category"] = self.category
        return params
