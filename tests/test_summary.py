from __future__ import annotations

import datetime as dt

from models.expense import CATEGORIES, Expense
from services.analytics_service import calculate_summary, percent_change
from utils.money import round_money


def _expense(category, amount):
    return Expense(title="Item", amount=amount, category=category, date=dt.date(2024, 1, 1))


def _entries(summary):
    return [(entry.category, entry.total, entry.count) for entry in summary.by_category]


def test_empty_summary_lists_every_category_at_zero():
    summary = calculate_summary([])
    assert summary.total_amount == 0
    assert summary.count == 0
    assert _entries(summary) == [(category, 0, 0) for category in CATEGORIES]


def test_summary_sorts_categories_by_total_descending():
    expenses = [
        _expense("Food", 10.00),
        _expense("Food", round_money(5.005)),
        _expense("Transport", 20.00),
    ]
    summary = calculate_summary(expenses)
    assert summary.total_amount == 35.01
    assert summary.count == 3
    assert _entries(summary) == [
        ("Transport", 20.0, 1),
        ("Food", 15.01, 2),
        ("Shopping", 0, 0),
        ("Bills", 0, 0),
        ("Other", 0, 0),
    ]


def test_equal_totals_keep_first_seen_order_then_declaration_order():
    expenses = [_expense("Other", 5), _expense("Bills", 5), _expense("Food", 1)]
    summary = calculate_summary(expenses)
    assert [entry.category for entry in summary.by_category] == ["Other", "Bills", "Food", "Transport", "Shopping"]


def test_totals_are_cent_exact():
    summary = calculate_summary([_expense("Food", 0.1)] * 3 + [_expense("Bills", 0.2)])
    assert summary.total_amount == 0.5
    assert summary.by_category[0].total == 0.3


def test_summary_serializes_with_camel_case_keys():
    payload = calculate_summary([_expense("Food", 1.5)]).model_dump(mode="json", by_alias=True)
    assert set(payload) == {"totalAmount", "count", "byCategory"}
    assert len(payload["byCategory"]) == 5
    assert payload["byCategory"][0] == {"category": "Food", "total": 1.5, "count": 1}


def test_percent_change():
    assert percent_change(0, 50) == 0
    assert percent_change(0.0, 0.0) == 0
    assert percent_change(40, 50) == "25.00"
    assert percent_change(30, 20) == "-33.33"


def test_summary_of_very_large_amounts():
    summary = calculate_summary([_expense("Bills", 6e25), _expense("Bills", 6e25)])
    assert summary.total_amount == 1.2e26
    assert summary.by_category[0].total == 1.2e26
