from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone

import pytest
import requests

from models.expense import ExpenseCreate, parse_date
from ui.api_client import ApiClientError, ExpenseApiClient
from ui.state import (
    ExpenseViewState,
    create_expense,
    delete_expense,
    dismiss_error,
    fetch_expenses,
    form_payload,
)

RECORD = {
    "id": "65a1b2c3d4e5f6a7b8c9d0e1",
    "amount": 12.5,
    "category": "Food",
    "description": "Lunch",
    "date": "2024-01-01T00:00:00Z",
    "createdAt": "2024-01-02T00:00:00Z",
    "updatedAt": "2024-01-02T00:00:00Z",
}


def make_response(status_code: int, payload) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(payload).encode()
    return response


class FakeSession:
    """Records calls and replays queued responses (or raises queued errors)."""

    def __init__(self, *outcomes):
        self.headers = {}
        self.outcomes = list(outcomes)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def client_with(*outcomes) -> ExpenseApiClient:
    return ExpenseApiClient(base_url="http://api.test/api/", timeout=3, session=FakeSession(*outcomes))


def test_list_unwraps_envelope():
    client = client_with(
        make_response(200, {"success": True, "message": "ok", "data": {"expenses": [RECORD], "total": 12.5, "count": 1}})
    )

    assert client.expenses() == [RECORD]
    method, url, kwargs = client.session.calls[0]
    assert (method, url, kwargs["timeout"]) == ("GET", "http://api.test/api/expenses", 3)


@pytest.mark.parametrize(
    "error, message",
    [
        (requests.Timeout(), "Request timeout. Please try again."),
        (requests.ConnectionError(), "Unable to connect to server. Please check your connection."),
    ],
)
def test_transport_failures_become_messages(error, message):
    with pytest.raises(ApiClientError) as exc_info:
        client_with(error).expenses()
    assert exc_info.value.message == message


def test_server_errors_use_envelope_message():
    client = client_with(
        make_response(
            400,
            {
                "success": False,
                "message": "Validation error",
                "errors": [{"field": "amount", "message": "Amount must be positive"}],
            },
        ),
        make_response(500, {"success": False, "message": "Internal Server Error"}),
    )

    with pytest.raises(ApiClientError) as exc_info:
        client.create_expense({"amount": -1})
    assert exc_info.value.message == "Validation error (amount: Amount must be positive)"

    with pytest.raises(ApiClientError) as exc_info:
        client.delete_expense(RECORD["id"])
    assert exc_info.value.message == "Internal Server Error"


def test_fetch_create_delete_update_the_snapshot():
    client = client_with(
        make_response(200, {"success": True, "message": "ok", "data": {"expenses": [RECORD], "total": 12.5, "count": 1}}),
        make_response(201, {"success": True, "message": "created", "data": {**RECORD, "id": "65a1b2c3d4e5f6a7b8c9d0e2"}}),
        make_response(200, {"success": True, "message": "deleted", "data": None}),
    )
    state = ExpenseViewState()

    fetch_expenses(state, client)
    assert state.loaded and not state.loading and state.error is None
    assert [row.id for row in state.expenses] == [RECORD["id"]]

    created = create_expense(state, client, {"amount": 12.5})
    assert [row.id for row in state.expenses] == [created.id, RECORD["id"]]

    assert delete_expense(state, client, RECORD["id"]) is True
    assert [row.id for row in state.expenses] == [created.id]
    assert len(client.session.calls) == 3


def test_failures_are_kept_for_the_banner():
    client = client_with(
        requests.ConnectionError(),
        make_response(404, {"success": False, "message": "Expense not found"}),
    )
    state = ExpenseViewState()

    fetch_expenses(state, client)
    assert state.error == "Unable to connect to server. Please check your connection."
    assert not state.loaded and not state.loading

    dismiss_error(state)
    assert state.error is None

    assert delete_expense(state, client, RECORD["id"]) is False
    assert state.error == "Expense not found"


def test_form_day_starts_at_local_midnight():
    ist = timezone(timedelta(hours=5, minutes=30))
    payload = form_payload(12.499, "Food", "Lunch", date(2024, 6, 10), tz=ist)

    assert payload == {
        "amount": 12.5,
        "category": "Food",
        "description": "Lunch",
        "date": "2024-06-10T00:00:00+05:30",
    }
    # 01:00 in Kolkata is still the previous day in UTC
    server_now = datetime(2024, 6, 9, 19, 30, tzinfo=timezone.utc)
    assert parse_date(payload["date"]) == datetime(2024, 6, 9, 18, 30, tzinfo=timezone.utc)
    assert parse_date(payload["date"]) <= server_now


def test_form_payload_for_today_is_not_in_the_future():
    payload = form_payload(5, "Food", "Snack", date.today())

    expense = ExpenseCreate.model_validate(payload)
    assert expense.date <= datetime.now(timezone.utc)
