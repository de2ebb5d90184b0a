"""Persistence for expense records in the MongoDB `expenses` collection."""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from errors import BadInputError, NotFoundError
from models.expense import Expense, ExpenseCreate, ExpenseQuery, ExpenseUpdate
from models.validation import validate_fields

logger = logging.getLogger(__name__)


def to_bson_time(value: datetime) -> datetime:
    """UTC datetime truncated to the millisecond precision BSON stores."""
    value = value.astimezone(timezone.utc)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def utc_now() -> datetime:
    return to_bson_time(datetime.now(timezone.utc))


def to_object_id(expense_id: str) -> ObjectId:
    try:
        return ObjectId(expense_id)
    except (InvalidId, TypeError) as exc:
        raise BadInputError("Invalid expense ID format") from exc


class ExpenseStore:
    """
    CRUD and aggregation over a single Motor collection.

    Every write is validated again against the same schemas the HTTP layer
    uses, so records that bypass the request boundary obey the same rules.
    """

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self._collection = collection

    async def ensure_indexes(self) -> None:
        await self._collection.create_index([("category", ASCENDING)])
        await self._collection.create_index([("date", DESCENDING)])
        await self._collection.create_index([("createdAt", DESCENDING)])
        logger.info("Indexes ensured on the expenses collection.")

    async def create(self, data: Mapping[str, Any]) -> Expense:
        expense_in = validate_fields(ExpenseCreate, data)
        now = utc_now()
        document: Dict[str, Any] = expense_in.model_dump()
        document["date"] = to_bson_time(expense_in.date)
        document["createdAt"] = now
        document["updatedAt"] = now
        result = await self._collection.insert_one(document)
        document["_id"] = result.inserted_id
        logger.info(f"Inserted expense {result.inserted_id} ({expense_in.category}, {expense_in.amount}).")
        return Expense.from_document(document)

    async def find(self, query: Optional[ExpenseQuery] = None) -> List[Expense]:
        """Lists records matching the optional category, sorted, then skip and limit."""
        query = query or ExpenseQuery()
        mongo_filter: Dict[str, Any] = {}
        if query.category:
            mongo_filter["category"] = query.category
        direction = ASCENDING if query.order == "asc" else DESCENDING

        cursor = self._collection.find(mongo_filter).sort(query.sort_by, direction)
        if query.skip:
            cursor = cursor.skip(query.skip)
        if query.limit:
            cursor = cursor.limit(query.limit)

        expenses = [Expense.from_document(doc) async for doc in cursor]
        logger.debug(f"Found {len(expenses)} expenses for filter {mongo_filter} sorted by {query.sort_by} {query.order}.")
        return expenses

    async def get_by_id(self, expense_id: str) -> Expense:
        document = await self._collection.find_one({"_id": to_object_id(expense_id)})
        if document is None:
            raise NotFoundError("Expense not found")
        return Expense.from_document(document)

    async def update_by_id(self, expense_id: str, data: Mapping[str, Any]) -> Expense:
        object_id = to_object_id(expense_id)
        changes = validate_fields(ExpenseUpdate, data).model_dump(exclude_unset=True)
        if "date" in changes:
            changes["date"] = to_bson_time(changes["date"])
        changes["updatedAt"] = utc_now()
        # last write wins: no version check
        document = await self._collection.find_one_and_update(
            {"_id": object_id},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if document is None:
            raise NotFoundError("Expense not found")
        logger.info(f"Updated expense {expense_id}: {sorted(changes)}")
        return Expense.from_document(document)

    async def delete_by_id(self, expense_id: str) -> Expense:
        document = await self._collection.find_one_and_delete({"_id": to_object_id(expense_id)})
        if document is None:
            raise NotFoundError("Expense not found")
        logger.info(f"Deleted expense {expense_id}.")
        return Expense.from_document(document)

    async def sum_by_category(self, category: Optional[str] = None) -> float:
        """Total amount over all records, or over one category. 0 when nothing matches."""
        match = {"category": category} if category else {}
        pipeline = [
            {"$match": match},
            {"$group": {"_id": None, "total": {"$sum": "$amount"}}},
        ]
        total = 0.0
        async for row in self._collection.aggregate(pipeline):
            total = row.get("total") or 0.0
        return round(total, 2)
