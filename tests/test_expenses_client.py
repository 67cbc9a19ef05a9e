from __future__ import annotations

import asyncio
import datetime as dt

import httpx
import pytest

from models.expense import ExpenseFilter
from utils.errors import UpstreamError, UpstreamTimeout, UpstreamUnavailable
from utils.expenses_client import ExpensesClient

RECORD = {
    "id": "65d1f0c2a1b2c3d4e5f60718",
    "title": "Gas Station",
    "amount": 45.0,
    "category": "Transport",
    "date": "2024-02-09",
    "notes": "",
    "createdAt": "2024-02-09T10:00:00Z",
    "updatedAt": "2024-02-09T10:00:00Z",
}


def _fetch(handler, filters=None):
    async def run():
        client = ExpensesClient("http://expenses.test", timeout=1.0, transport=httpx.MockTransport(handler))
        try:
            return await client.fetch_expenses(filters or ExpenseFilter())
        finally:
            await client.aclose()

    return asyncio.run(run())


def test_fetch_passes_filters_and_parses_records():
    seen = []

    def handler(request):
        seen.append(request.url)
        return httpx.Response(200, json={"success": True, "count": 1, "data": [RECORD]})

    filters = ExpenseFilter(from_date=dt.date(2024, 2, 1), to_date=dt.date(2024, 2, 29), category="Transport")
    (expense,) = _fetch(handler, filters)
    assert expense.id == RECORD["id"]
    assert expense.date == dt.date(2024, 2, 9)
    assert expense.category.value == "Transport"

    (url,) = seen
    assert url.path == "/api/expenses"
    assert dict(url.params) == {"from": "2024-02-01", "to": "2024-02-29", "category": "Transport"}


def test_connection_failure_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamUnavailable) as excinfo:
        _fetch(handler)
    assert excinfo.value.status_code == 503


def test_deadline_is_a_distinct_timeout():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(UpstreamTimeout) as excinfo:
        _fetch(handler)
    assert excinfo.value.status_code == 504


def test_upstream_client_error_is_relayed_with_prefix():
    def handler(request):
        return httpx.Response(400, json={"error": "Invalid category filter", "statusCode": 400})

    with pytest.raises(UpstreamError) as excinfo:
        _fetch(handler)
    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "Expenses service error: Invalid category filter"


def test_upstream_server_error_becomes_bad_gateway():
    def handler(request):
        return httpx.Response(503, text="gateway down")

    with pytest.raises(UpstreamError) as excinfo:
        _fetch(handler)
    assert excinfo.value.status_code == 502
    assert excinfo.value.message == "Expenses service error: Service Unavailable"


def test_malformed_payload_is_an_upstream_error():
    def handler(request):
        return httpx.Response(200, json={"data": [{**RECORD, "category": "Travel"}]})

    with pytest.raises(UpstreamError) as excinfo:
        _fetch(handler)
    assert excinfo.value.status_code == 502
