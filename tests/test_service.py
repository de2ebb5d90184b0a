from __future__ import annotations

import pytest
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from errors import BadInputError, ConflictError, ErrorKind, InternalError, NotFoundError
from models.expense import ExpenseCreate, ExpenseQuery, ExpenseUpdate
from services.expenses_service import ExpenseService


class FailingStore:
    """Store double whose every operation raises the configured error."""

    def __init__(self, error: Exception):
        self.error = error

    async def create(self, data):
        raise self.error

    async def find(self, query=None):
        raise self.error

    async def get_by_id(self, expense_id):
        raise self.error

    async def update_by_id(self, expense_id, data):
        raise self.error

    async def delete_by_id(self, expense_id):
        raise self.error

    async def sum_by_category(self, category=None):
        raise self.error


EXPENSE_ID = "65a1b2c3d4e5f6a7b8c9d0e1"


def new_expense() -> ExpenseCreate:
    return ExpenseCreate(amount=12.5, category="Food", description="Lunch", date="2024-01-01T00:00:00Z")


async def test_create_and_read_through_store(service):
    created = await service.create_expense(new_expense())

    assert (await service.get_expense(created.id)) == created
    assert [expense.id for expense in await service.list_expenses(ExpenseQuery(category="Food"))] == [created.id]
    assert await service.get_total("Food") == 12.5


async def test_update_sends_only_supplied_fields(service):
    created = await service.create_expense(new_expense())

    updated = await service.update_expense(created.id, ExpenseUpdate(description="Team lunch"))

    assert updated.description == "Team lunch"
    assert updated.amount == created.amount


async def test_domain_errors_pass_through_unwrapped():
    original = NotFoundError("Expense not found")
    service = ExpenseService(FailingStore(original))

    with pytest.raises(NotFoundError) as exc_info:
        await service.get_expense(EXPENSE_ID)
    assert exc_info.value is original


async def test_malformed_identifier_becomes_bad_input():
    service = ExpenseService(FailingStore(InvalidId("bad id")))

    with pytest.raises(BadInputError) as exc_info:
        await service.delete_expense("bad id")
    assert exc_info.value.kind is ErrorKind.BAD_INPUT
    assert exc_info.value.status_code == 400


async def test_duplicate_key_becomes_conflict():
    service = ExpenseService(FailingStore(DuplicateKeyError("E11000 duplicate key")))

    with pytest.raises(ConflictError) as exc_info:
        await service.create_expense(new_expense())
    assert exc_info.value.kind is ErrorKind.BAD_INPUT
    assert exc_info.value.status_code == 409


@pytest.mark.parametrize(
    "call",
    [
        lambda service: service.create_expense(new_expense()),
        lambda service: service.list_expenses(ExpenseQuery()),
        lambda service: service.get_expense(EXPENSE_ID),
        lambda service: service.update_expense(EXPENSE_ID, ExpenseUpdate(amount=1)),
        lambda service: service.delete_expense(EXPENSE_ID),
        lambda service: service.get_total(),
    ],
)
async def test_unexpected_failures_become_internal_without_details(call):
    service = ExpenseService(FailingStore(ServerSelectionTimeoutError("mongo-1:27017 timed out")))

    with pytest.raises(InternalError) as exc_info:
        await call(service)
    assert exc_info.value.message.startswith("Failed to ")
    assert "mongo-1" not in exc_info.value.message
