"""Service layer for persisting and reading expenses (the expense record store)."""
import datetime as dt
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

import pymongo
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from models.expense import CATEGORIES, MUTABLE_FIELDS, Expense, ExpenseFilter
from models.validation import validate_expense_fields
from utils.database import MongoHandle
from utils.errors import DatabaseError, DatabaseUnavailable, EmptyUpdate, InvalidFilter, NotFound

logger = logging.getLogger(__name__)

END_OF_DAY = dt.time(23, 59, 59, 999000)
LIST_SORT = [("date", pymongo.DESCENDING), ("createdAt", pymongo.DESCENDING)]


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _to_object_id(expense_id: str) -> ObjectId:
    try:
        return ObjectId(expense_id)
    except (InvalidId, TypeError) as exc:
        # an id that cannot exist is reported like any other missing id
        raise NotFound() from exc


def _start_of_day(day: dt.date) -> dt.datetime:
    return dt.datetime.combine(day, dt.time.min)


def build_mongo_query(filters: Optional[ExpenseFilter]) -> Dict[str, Any]:
    """Translate a filter into a MongoDB query document.

    ``to`` is extended to the end of its day so a same-day bound includes every
    record on that date.
    """
    query: Dict[str, Any] = {}
    if filters is None:
        return query
    if filters.from_date is not None or filters.to_date is not None:
        query["date"] = {}
        if filters.from_date is not None:
            query["date"]["$gte"] = _start_of_day(filters.from_date)
        if filters.to_date is not None:
            query["date"]["$lte"] = dt.datetime.combine(filters.to_date, END_OF_DAY)
    if filters.category is not None:
        if filters.category not in CATEGORIES:
            raise InvalidFilter()
        query["category"] = filters.category
    return query


def document_to_expense(doc: Mapping[str, Any]) -> Expense:
    data = dict(doc)
    if "_id" in data:
        data["id"] = str(data.pop("_id"))
    if isinstance(data.get("date"), dt.datetime):
        data["date"] = data["date"].date()
    return Expense.model_validate(data)


class ExpenseStore:
    """Validated CRUD over the expenses collection.

    The store only ever writes normalized fields, so every persisted record
    satisfies the field rules in ``models.validation``.
    """

    def __init__(self, handle: MongoHandle, clock: Callable[[], dt.datetime] = _utcnow):
        self._handle = handle
        self._clock = clock

    @property
    def collection(self) -> AsyncIOMotorCollection:
        collection = self._handle.collection
        if collection is None:
            logger.error("Expenses collection not available. Check MongoDB connection.")
            raise DatabaseUnavailable()
        return collection

    async def create(self, fields: Mapping[str, Any]) -> Expense:
        values = validate_expense_fields(fields)
        now = self._clock()
        doc = {
            "title": values["title"],
            "amount": values["amount"],
            "category": values["category"],
            "date": _start_of_day(values["date"]),
            "notes": values["notes"],
            "createdAt": now,
            "updatedAt": now,
        }
        collection = self.collection
        try:
            result = await collection.insert_one(doc)
        except PyMongoError as e:
            logger.error(f"Database error creating expense: {e}")
            raise DatabaseError() from e
        doc["_id"] = result.inserted_id
        expense = document_to_expense(doc)
        logger.info(f"Created expense {expense.id} ({expense.category.value}, {expense.amount:.2f})")
        return expense

    async def get(self, expense_id: str) -> Expense:
        object_id = _to_object_id(expense_id)
        collection = self.collection
        try:
            doc = await collection.find_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Database error fetching expense {expense_id}: {e}")
            raise DatabaseError() from e
        if doc is None:
            raise NotFound()
        return document_to_expense(doc)

    async def list(self, filters: Optional[ExpenseFilter] = None) -> List[Expense]:
        """Matching records, newest ``date`` first, ties broken by newest ``createdAt``."""
        query = build_mongo_query(filters)
        collection = self.collection
        logger.debug(f"Listing expenses with query {query}")
        expenses = []
        try:
            cursor = collection.find(query).sort(LIST_SORT)
            async for doc in cursor:
                expenses.append(document_to_expense(doc))
        except PyMongoError as e:
            logger.error(f"Database error listing expenses: {e}")
            raise DatabaseError() from e
        logger.info(f"Fetched {len(expenses)} expenses.")
        return expenses

    async def update(self, expense_id: str, fields: Optional[Mapping[str, Any]]) -> Expense:
        supplied = {name: value for name, value in (fields or {}).items() if name in MUTABLE_FIELDS}
        if not supplied:
            raise EmptyUpdate()
        values = validate_expense_fields(supplied, partial=True)
        if "date" in values:
            values["date"] = _start_of_day(values["date"])
        values["updatedAt"] = self._clock()

        object_id = _to_object_id(expense_id)
        collection = self.collection
        try:
            doc = await collection.find_one_and_update(
                {"_id": object_id},
                {"$set": values},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error(f"Database error updating expense {expense_id}: {e}")
            raise DatabaseError() from e
        if doc is None:
            raise NotFound()
        logger.info(f"Updated expense {expense_id}: {', '.join(sorted(supplied))}")
        return document_to_expense(doc)

    async def delete(self, expense_id: str) -> Expense:
        object_id = _to_object_id(expense_id)
        collection = self.collection
        try:
            doc = await collection.find_one_and_delete({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Database error deleting expense {expense_id}: {e}")
            raise DatabaseError() from e
        if doc is None:
            raise NotFound()
        logger.info(f"Deleted expense {expense_id}")
        return document_to_expense(doc)

    async def clear(self) -> int:
        """Deletes every document from the expense collection."""
        collection = self.collection
        logger.warning(f"Attempting to delete ALL documents from collection '{collection.name}'.")
        try:
            result = await collection.delete_many({})
        except PyMongoError as e:
            logger.error(f"Database error during delete_many operation: {e}")
            raise DatabaseError() from e
        logger.info(f"Deleted {result.deleted_count} documents from collection '{collection.name}'.")
        return result.deleted_count
