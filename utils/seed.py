"""Populate the expenses collection with sample data.

Run with ``python -m utils.seed``. Existing expenses are deleted first.
"""
import asyncio
import logging
from typing import Any, Dict, List

from models.expense import CATEGORIES, Expense
from services.expenses_service import ExpenseStore
from utils.database import MongoHandle
from utils.logging_config import configure_logging
from utils.money import round_money
from utils.settings import get_settings

logger = logging.getLogger(__name__)

SAMPLE_EXPENSES: List[Dict[str, Any]] = [
    {"title": "Grocery Shopping", "amount": 125.50, "category": "Food", "date": "2024-02-10",
     "notes": "Weekly groceries from Whole Foods"},
    {"title": "Gas Station", "amount": 45.00, "category": "Transport", "date": "2024-02-09",
     "notes": "Fill up tank"},
    {"title": "Netflix Subscription", "amount": 15.99, "category": "Bills", "date": "2024-02-08",
     "notes": "Monthly subscription"},
    {"title": "Coffee Shop", "amount": 8.50, "category": "Food", "date": "2024-02-08",
     "notes": "Morning coffee and pastry"},
    {"title": "New Headphones", "amount": 89.99, "category": "Shopping", "date": "2024-02-07",
     "notes": "Wireless Bluetooth headphones"},
    {"title": "Lunch at Restaurant", "amount": 32.00, "category": "Food", "date": "2024-02-06",
     "notes": "Team lunch"},
    {"title": "Uber Ride", "amount": 18.75, "category": "Transport", "date": "2024-02-05",
     "notes": "Ride to airport"},
    {"title": "Electric Bill", "amount": 87.50, "category": "Bills", "date": "2024-02-01",
     "notes": "January electric bill"},
    {"title": "Gym Membership", "amount": 50.00, "category": "Other", "date": "2024-02-01",
     "notes": "Monthly gym fee"},
    {"title": "Book Purchase", "amount": 24.99, "category": "Shopping", "date": "2024-01-30",
     "notes": "Programming book from Amazon"},
    {"title": "Pizza Delivery", "amount": 28.50, "category": "Food", "date": "2024-01-28",
     "notes": "Friday night dinner"},
    {"title": "Metro Card", "amount": 35.00, "category": "Transport", "date": "2024-01-25",
     "notes": "Monthly metro pass"},
    {"title": "Phone Bill", "amount": 65.00, "category": "Bills", "date": "2024-01-20",
     "notes": "Monthly phone service"},
    {"title": "New Shoes", "amount": 79.99, "category": "Shopping", "date": "2024-01-15",
     "notes": "Running shoes"},
    {"title": "Restaurant Dinner", "amount": 95.00, "category": "Food", "date": "2024-01-12",
     "notes": "Anniversary dinner"},
]


async def seed_database(store: ExpenseStore) -> List[Expense]:
    deleted = await store.clear()
    logger.info(f"Cleared {deleted} existing expenses")
    created = [await store.create(sample) for sample in SAMPLE_EXPENSES]
    logger.info(f"Inserted {len(created)} sample expenses")

    for category in CATEGORIES:
        in_category = [expense.amount for expense in created if expense.category.value == category]
        logger.info(f"{category:<12} | Count: {len(in_category):<3} | Total: ${round_money(sum(in_category)):.2f}")
    logger.info(f"Total Amount: ${round_money(sum(expense.amount for expense in created)):.2f}")
    return created


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    handle = MongoHandle(settings.mongodb_uri, settings.db_name, settings.collection_name)
    await handle.open()
    try:
        await seed_database(ExpenseStore(handle))
    finally:
        handle.close()


if __name__ == "__main__":
    asyncio.run(main())
