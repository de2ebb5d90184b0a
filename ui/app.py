"""Streamlit single-page client for the expense tracker.

Run with ``streamlit run ui/app.py`` while the API is up (see EXPENSES_API_URL).
"""
from datetime import date

import streamlit as st

from ui.api_client import ApiClientError, ExpenseApiClient
from ui.projections import (
    category_options,
    filter_and_sort,
    format_amount,
    format_date,
    summarize,
    total_of,
)
from ui.state import (
    ExpenseViewState,
    create_expense,
    delete_expense,
    dismiss_error,
    fetch_expenses,
    form_payload,
)

SORT_OPTIONS = {"Newest First": "desc", "Oldest First": "asc"}
ALL_CATEGORIES = "All Categories"


@st.cache_resource
def get_client() -> ExpenseApiClient:
    return ExpenseApiClient()


def get_view_state() -> ExpenseViewState:
    if "view" not in st.session_state:
        st.session_state.view = ExpenseViewState()
    return st.session_state.view


@st.dialog("Delete expense")
def confirm_delete(view: ExpenseViewState, client: ExpenseApiClient, expense_id: str, label: str):
    st.write(f"Are you sure you want to delete **{label}**?")
    col1, col2 = st.columns(2)
    if col1.button("Delete", type="primary", use_container_width=True):
        delete_expense(view, client, expense_id)
        st.rerun()
    if col2.button("Cancel", use_container_width=True):
        st.rerun()


def error_banner(view: ExpenseViewState, client: ExpenseApiClient) -> None:
    if not view.error:
        return
    st.error(view.error)
    col1, col2, _ = st.columns([1, 1, 6])
    if col1.button("Retry"):
        dismiss_error(view)
        with st.spinner("Loading expenses..."):
            fetch_expenses(view, client)
        st.rerun()
    if col2.button("Dismiss"):
        dismiss_error(view)
        st.rerun()


def expense_form(view: ExpenseViewState, client: ExpenseApiClient) -> None:
    st.subheader("➕ Add Expense")
    with st.form("expense_form", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        amount = col1.number_input("Amount", min_value=0.01, step=0.01, format="%.2f")
        category = col2.text_input("Category", max_chars=50, placeholder="e.g. Food")
        spent_on = col3.date_input("Date", value=date.today(), max_value=date.today())
        description = st.text_area("Description", max_chars=500, placeholder="What was it for?")
        submitted = st.form_submit_button("Add Expense", type="primary")

    if not submitted:
        return
    try:
        created = create_expense(view, client, form_payload(amount, category, description, spent_on))
    except ApiClientError as exc:
        st.error(exc.message)
        return
    st.success(f"Added {format_amount(created.amount)} to {created.category}.")


def summary_panel(view: ExpenseViewState) -> None:
    if not view.expenses:
        return
    summary = summarize(view.expenses)
    st.subheader("📊 Expense Summary")
    count = len(summary.categories)
    st.metric("Total Expenses", format_amount(summary.grand_total))
    st.caption(f"Across {count} {'category' if count == 1 else 'categories'}")

    for item in summary.categories:
        col1, col2, col3 = st.columns([3, 2, 5])
        col1.markdown(f"**{item.category}**")
        col2.write(format_amount(item.total))
        col3.progress(min(int(round(item.percentage)), 100), text=f"{item.percentage:.1f}%")


def expense_table(view: ExpenseViewState, client: ExpenseApiClient) -> None:
    st.subheader("📄 Expenses")
    col1, col2, col3 = st.columns([3, 3, 1])
    selected = col1.selectbox("Category", (ALL_CATEGORIES,) + category_options(view.expenses))
    sort_label = col2.selectbox("Sort", tuple(SORT_OPTIONS))
    if col3.button("Refresh"):
        with st.spinner("Loading expenses..."):
            fetch_expenses(view, client)
        st.rerun()

    category = None if selected == ALL_CATEGORIES else selected
    rows = filter_and_sort(view.expenses, category, SORT_OPTIONS[sort_label])

    label = f"Total ({category})" if category else "Total"
    st.metric(label, format_amount(total_of(rows)))
    st.caption(f"{len(rows)} {'expense' if len(rows) == 1 else 'expenses'}")

    if not rows:
        st.info("No expenses in this category." if category else "Get started by adding a new expense.")
        return

    header = st.columns([2, 2, 4, 2, 1])
    for column, title in zip(header, ("Date", "Category", "Description", "Amount", "")):
        column.markdown(f"**{title}**")
    for row in rows:
        cols = st.columns([2, 2, 4, 2, 1])
        cols[0].write(format_date(row.date))
        cols[1].write(row.category)
        cols[2].write(row.description)
        cols[3].write(format_amount(row.amount))
        if cols[4].button("🗑", key=f"delete-{row.id}", help="Delete expense"):
            confirm_delete(view, client, row.id, f"{row.description} ({format_amount(row.amount)})")


def main() -> None:
    st.set_page_config(page_title="Expense Tracker", layout="wide")
    st.title("💸 Expense Tracker")
    st.caption("Track and manage your personal expenses")

    client = get_client()
    view = get_view_state()

    # fetch on first render of the session
    if not view.loaded and view.error is None:
        with st.spinner("Loading expenses..."):
            fetch_expenses(view, client)

    error_banner(view, client)
    expense_form(view, client)
    st.divider()
    summary_panel(view)
    st.divider()
    expense_table(view, client)


main()
