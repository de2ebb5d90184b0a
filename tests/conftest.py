from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from config import Settings
from database import Database
from main import create_app
from services.expense_store import ExpenseStore
from services.expenses_service import ExpenseService

TEST_DB = "expense_tracker_test"


@pytest.fixture()
def mongo_client():
    return AsyncMongoMockClient()


@pytest.fixture()
def collection(mongo_client):
    return mongo_client[TEST_DB]["expenses"]


@pytest.fixture()
def store(collection):
    return ExpenseStore(collection)


@pytest.fixture()
def service(store):
    return ExpenseService(store)


@pytest.fixture()
def settings():
    return Settings(environment="production", rate_limit="")


@pytest.fixture()
def app(settings, mongo_client):
    return create_app(settings, Database(None, TEST_DB, client=mongo_client))


@pytest.fixture()
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def expense_payload():
    def build(**overrides):
        payload = {
            "amount": 12.5,
            "category": "Food",
            "description": "Lunch",
            "date": "2024-01-01T00:00:00Z",
        }
        payload.update(overrides)
        return payload

    return build
