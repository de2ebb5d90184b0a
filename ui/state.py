"""View state of the expense page and the actions that change it."""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, tzinfo
from typing import Any, Dict, Optional

from ui.api_client import ApiClientError, ExpenseApiClient
from ui.projections import ExpenseRow, Snapshot, make_snapshot, prepend, without

logger = logging.getLogger(__name__)


@dataclass
class ExpenseViewState:
    expenses: Snapshot = field(default_factory=tuple)
    # true only while fetch_expenses runs; the page shows that as st.spinner
    loading: bool = False
    loaded: bool = False
    error: Optional[str] = None


def fetch_expenses(state: ExpenseViewState, client: ExpenseApiClient) -> None:
    """Replaces the snapshot with the server's list; failures land in ``state.error``."""
    state.loading = True
    state.error = None
    try:
        state.expenses = make_snapshot(client.expenses())
        state.loaded = True
    except ApiClientError as exc:
        logger.warning(f"Fetching expenses failed: {exc.message}")
        state.error = exc.message
    finally:
        state.loading = False


def create_expense(state: ExpenseViewState, client: ExpenseApiClient, expense: Dict[str, Any]) -> ExpenseRow:
    """
    Creates the expense and prepends it to the snapshot without refetching.
    Raises ApiClientError so the form can report the failure.
    """
    created = ExpenseRow.from_api(client.create_expense(expense))
    state.expenses = prepend(state.expenses, created)
    return created


def delete_expense(state: ExpenseViewState, client: ExpenseApiClient, expense_id: str) -> bool:
    try:
        client.delete_expense(expense_id)
    except ApiClientError as exc:
        state.error = exc.message
        return False
    state.expenses = without(state.expenses, expense_id)
    return True


def dismiss_error(state: ExpenseViewState) -> None:
    state.error = None


def form_payload(
    amount: float,
    category: str,
    description: str,
    spent_on: date,
    tz: Optional[tzinfo] = None,
) -> Dict[str, Any]:
    """
    Request body for a submitted form. The picked day starts at midnight in
    ``tz`` (the machine's local zone by default), so today is never ahead of
    the server clock.
    """
    if tz is None:
        start = datetime.combine(spent_on, time.min).astimezone()
    else:
        start = datetime.combine(spent_on, time.min, tzinfo=tz)
    return {
        "amount": round(float(amount), 2),
        "category": category,
        "description": description,
        "date": start.isoformat(),
    }
