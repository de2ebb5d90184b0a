"""Service layer for handling expense-related logic."""
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError

from errors import BadInputError, ConflictError, ExpenseTrackerError, InternalError
from models.expense import Expense, ExpenseCreate, ExpenseQuery, ExpenseUpdate
from services.expense_store import ExpenseStore

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """
    Normalizes whatever the store raises into the domain taxonomy.
    Domain errors pass through untouched; storage details never reach the client.
    """
    try:
        yield
    except ExpenseTrackerError:
        raise
    except InvalidId as exc:
        raise BadInputError("Invalid expense ID format") from exc
    except DuplicateKeyError as exc:
        logger.warning(f"Duplicate key while trying to {action}: {exc}")
        raise ConflictError("Expense already exists") from exc
    except Exception as exc:
        logger.exception(f"Database error while trying to {action}: {exc}")
        raise InternalError(f"Failed to {action}") from exc


class ExpenseService:
    """Thin orchestration over the ExpenseStore."""

    def __init__(self, store: ExpenseStore) -> None:
        self._store = store

    async def create_expense(self, expense_in: ExpenseCreate) -> Expense:
        logger.info(f"Creating expense in category '{expense_in.category}'.")
        with storage_errors("create expense"):
            return await self._store.create(expense_in.model_dump())

    async def list_expenses(self, query: ExpenseQuery) -> List[Expense]:
        logger.info(
            f"Listing expenses (category={query.category!r}, sortBy={query.sort_by}, order={query.order}, "
            f"limit={query.limit}, skip={query.skip})"
        )
        with storage_errors("retrieve expenses"):
            return await self._store.find(query)

    async def get_expense(self, expense_id: str) -> Expense:
        with storage_errors("retrieve expense"):
            return await self._store.get_by_id(expense_id)

    async def update_expense(self, expense_id: str, update_in: ExpenseUpdate) -> Expense:
        changes = update_in.model_dump(exclude_unset=True)
        logger.info(f"Updating expense {expense_id} with fields {sorted(changes)}.")
        with storage_errors("update expense"):
            return await self._store.update_by_id(expense_id, changes)

    async def delete_expense(self, expense_id: str) -> Expense:
        logger.info(f"Deleting expense {expense_id}.")
        with storage_errors("delete expense"):
            return await self._store.delete_by_id(expense_id)

    async def get_total(self, category: Optional[str] = None) -> float:
        with storage_errors("calculate total"):
            return await self._store.sum_by_category(category)
