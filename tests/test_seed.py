from __future__ import annotations

import asyncio

from services.analytics_service import calculate_summary
from utils.seed import SAMPLE_EXPENSES, seed_database


def test_seed_replaces_existing_expenses(store, collection, sample_payload):
    asyncio.run(store.create(sample_payload))

    created = asyncio.run(seed_database(store))

    assert len(created) == len(SAMPLE_EXPENSES) == 15
    assert len(collection.docs) == 15
    assert {expense.title for expense in created} == {sample["title"] for sample in SAMPLE_EXPENSES}


def test_seeded_data_covers_every_category(store):
    created = asyncio.run(seed_database(store))
    summary = calculate_summary(created)

    assert summary.total_amount == 801.71
    assert summary.by_category[0].category == "Food"
    assert summary.by_category[0].total == 289.5
    assert all(entry.count > 0 for entry in summary.by_category)


def test_reseeding_is_idempotent(store, collection):
    asyncio.run(seed_database(store))
    asyncio.run(seed_database(store))
    assert len(collection.docs) == 15
