from __future__ import annotations

import asyncio
import datetime as dt

import pytest

from services import expense_query
from utils.errors import InvalidDateFormat, InvalidDateRange, InvalidFilter


class RecordingStore:
    def __init__(self, records=None):
        self.records = records or []
        self.calls = []

    async def list(self, filters):
        self.calls.append(filters)
        return list(self.records)


def test_build_filter_parses_all_parameters():
    filters = expense_query.build_filter("2024-01-01", "2024-01-31", "Bills")
    assert filters.from_date == dt.date(2024, 1, 1)
    assert filters.to_date == dt.date(2024, 1, 31)
    assert filters.category == "Bills"
    assert filters.to_query_params() == {"from": "2024-01-01", "to": "2024-01-31", "category": "Bills"}


def test_empty_parameters_are_treated_as_absent():
    filters = expense_query.build_filter("", None, "")
    assert filters.to_query_params() == {}


@pytest.mark.parametrize("value", ["2024-1-01", "20240101", "2024/01/01", "2024-01-01T00:00:00", "2024-13-01"])
def test_dates_must_be_literal_calendar_dates(value):
    with pytest.raises(InvalidDateFormat) as excinfo:
        expense_query.build_filter(to_param=value)
    assert excinfo.value.message == "Invalid to date format. Use YYYY-MM-DD"


def test_from_after_to_fails_before_store_access():
    store = RecordingStore()
    with pytest.raises(InvalidDateRange):
        asyncio.run(expense_query.query_expenses(store, "2024-02-01", "2024-01-01"))
    assert store.calls == []


def test_unknown_category_fails_before_store_access():
    store = RecordingStore()
    with pytest.raises(InvalidFilter):
        asyncio.run(expense_query.query_expenses(store, category="food"))
    assert store.calls == []


def test_query_returns_store_result_with_count():
    store = RecordingStore(records=["a", "b"])
    records, count = asyncio.run(expense_query.query_expenses(store, "2024-01-01", "2024-01-01"))
    assert records == ["a", "b"]
    assert count == 2
    (filters,) = store.calls
    assert filters.from_date == filters.to_date == dt.date(2024, 1, 1)
