"""
Pure, memoized views over an immutable snapshot of the expense list.

The UI keeps the list as a tuple of ``ExpenseRow`` and derives the category
options, the filtered/sorted table and the per-category summary from it.
Because snapshots and parameters are hashable, each projection is computed
once per (snapshot, parameters) pair and served from cache afterwards.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Iterable, Optional, Tuple

CURRENCY_SYMBOL = "₹"


@dataclass(frozen=True)
class ExpenseRow:
    id: str
    amount: float
    category: str
    description: str
    date: datetime

    @classmethod
    def from_api(cls, record: Dict[str, Any]) -> "ExpenseRow":
        date = record["date"]
        if isinstance(date, str):
            date = datetime.fromisoformat(date)
        if date.tzinfo is None:
            date = date.replace(tzinfo=timezone.utc)
        return cls(
            id=str(record["id"]),
            amount=float(record["amount"]),
            category=record["category"],
            description=record["description"],
            date=date,
        )


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total: float
    percentage: float


@dataclass(frozen=True)
class Summary:
    grand_total: float
    categories: Tuple[CategoryTotal, ...]


Snapshot = Tuple[ExpenseRow, ...]


def make_snapshot(records: Iterable[Dict[str, Any]]) -> Snapshot:
    return tuple(ExpenseRow.from_api(record) for record in records)


def prepend(snapshot: Snapshot, row: ExpenseRow) -> Snapshot:
    return (row,) + snapshot


def without(snapshot: Snapshot, expense_id: str) -> Snapshot:
    return tuple(row for row in snapshot if row.id != expense_id)


@lru_cache(maxsize=32)
def category_options(snapshot: Snapshot) -> Tuple[str, ...]:
    return tuple(sorted({row.category for row in snapshot}))


@lru_cache(maxsize=64)
def filter_and_sort(snapshot: Snapshot, category: Optional[str] = None, order: str = "desc") -> Snapshot:
    """Rows of one category (or all), ordered by date; ``desc`` is newest first."""
    rows = [row for row in snapshot if not category or row.category == category]
    rows.sort(key=lambda row: row.date, reverse=(order == "desc"))
    return tuple(rows)


@lru_cache(maxsize=64)
def total_of(rows: Snapshot) -> float:
    return round(sum(row.amount for row in rows), 2)


@lru_cache(maxsize=32)
def summarize(snapshot: Snapshot) -> Summary:
    totals: Dict[str, float] = {}
    grand_total = 0.0
    for row in snapshot:
        totals[row.category] = totals.get(row.category, 0.0) + row.amount
        grand_total += row.amount

    categories = tuple(
        CategoryTotal(
            category=category,
            total=round(total, 2),
            percentage=(total / grand_total) * 100 if grand_total > 0 else 0.0,
        )
        for category, total in sorted(totals.items(), key=lambda item: item[1], reverse=True)
    )
    return Summary(grand_total=round(grand_total, 2), categories=categories)


def format_amount(amount: float) -> str:
    return f"{CURRENCY_SYMBOL}{amount:,.2f}"


def format_date(value: datetime) -> str:
    return value.strftime("%d %b %Y")
