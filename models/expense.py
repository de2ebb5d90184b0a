"""Pydantic models for Expense data and the rules that validate it"""
import math
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

AMOUNT_MAX_DECIMALS = 2
CATEGORY_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 500
LIMIT_MAX = 1000
SORT_FIELDS = ("date", "amount", "createdAt")
SORT_ORDERS = ("asc", "desc")

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")
DIGITS_PATTERN = re.compile(r"^[0-9]+$")


# --- Field rules (shared by request validation and the store) ---

def decimal_places(value: float) -> int:
    """Number of fractional digits in the shortest decimal form of ``value``."""
    try:
        exponent = Decimal(repr(value)).as_tuple().exponent
    except InvalidOperation:
        return 0
    if not isinstance(exponent, int):
        return 0
    return max(0, -exponent)


def check_amount(value: Any) -> float:
    # bool is an int subclass, but `true` is not an amount
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PydanticCustomError("amount_type", "Amount must be a number")
    try:
        finite = math.isfinite(value)
    except OverflowError:  # integers beyond float range
        finite = False
    if not finite:
        raise PydanticCustomError("amount_finite", "Amount must be a finite number")
    if value <= 0:
        raise PydanticCustomError("amount_positive", "Amount must be positive")
    if decimal_places(value) > AMOUNT_MAX_DECIMALS:
        raise PydanticCustomError(
            "amount_decimals",
            "Amount must have at most {max_decimals} decimal places",
            {"max_decimals": AMOUNT_MAX_DECIMALS},
        )
    return float(value)


def check_text(value: Any, label: str, max_length: int) -> str:
    if not isinstance(value, str):
        raise PydanticCustomError("text_type", "{label} must be a string", {"label": label})
    value = value.strip()
    if not value:
        raise PydanticCustomError("text_empty", "{label} cannot be empty", {"label": label})
    if len(value) > max_length:
        raise PydanticCustomError(
            "text_too_long",
            "{label} cannot exceed {max_length} characters",
            {"label": label, "max_length": max_length},
        )
    return value


def parse_date(value: Any) -> datetime:
    """Parses an ISO-8601 string (or passes a datetime through) and normalizes it to UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise PydanticCustomError("date_format", "Date must be a valid ISO 8601 datetime string")
    else:
        raise PydanticCustomError("date_format", "Date must be a valid ISO 8601 datetime string")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):  # offset pushes the instant outside year 1..9999
        raise PydanticCustomError("date_range", "Date is out of range")


def check_date(value: Any) -> datetime:
    parsed = parse_date(value)
    if parsed > datetime.now(timezone.utc):
        raise PydanticCustomError("date_future", "Date cannot be in the future")
    return parsed


# --- Request / persistence schemas ---

class ExpenseCreate(BaseModel):
    """Fields required to create an expense."""
    model_config = ConfigDict(extra="ignore")

    amount: float
    category: str
    description: str
    date: datetime

    @field_validator("amount", mode="plain")
    @classmethod
    def _amount(cls, value: Any) -> float:
        return check_amount(value)

    @field_validator("category", mode="plain")
    @classmethod
    def _category(cls, value: Any) -> str:
        return check_text(value, "Category", CATEGORY_MAX_LENGTH)

    @field_validator("description", mode="plain")
    @classmethod
    def _description(cls, value: Any) -> str:
        return check_text(value, "Description", DESCRIPTION_MAX_LENGTH)

    @field_validator("date", mode="plain")
    @classmethod
    def _date(cls, value: Any) -> datetime:
        return check_date(value)


class ExpenseUpdate(ExpenseCreate):
    """
    Partial update: the same rules as ExpenseCreate, but every field optional.
    Only fields present in the input are validated (and later applied);
    an explicit null is rejected by the field rule itself.
    """
    amount: Optional[float] = None
    category: Optional[str] = None
    description: Optional[str] = None
    date: Optional[datetime] = None


class ExpenseTotalQuery(BaseModel):
    """Optional category filter for the total endpoint."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    category: Optional[str] = None

    @field_validator("category", mode="plain")
    @classmethod
    def _category(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise PydanticCustomError("category_filter", "Category filter cannot be empty")
        return value.strip()


class ExpenseQuery(ExpenseTotalQuery):
    """Listing parameters. Numeric values arrive as query strings."""
    sort_by: Literal["date", "amount", "createdAt"] = Field("date", alias="sortBy")
    order: Literal["asc", "desc"] = "desc"
    limit: Optional[int] = None
    skip: Optional[int] = None

    @field_validator("sort_by", mode="plain")
    @classmethod
    def _sort_by(cls, value: Any) -> str:
        if value not in SORT_FIELDS:
            raise PydanticCustomError("sort_by", "sortBy must be one of: date, amount, createdAt")
        return value

    @field_validator("order", mode="plain")
    @classmethod
    def _order(cls, value: Any) -> str:
        if value not in SORT_ORDERS:
            raise PydanticCustomError("order", "order must be either asc or desc")
        return value

    @field_validator("limit", mode="plain")
    @classmethod
    def _limit(cls, value: Any) -> int:
        number = _non_negative_int(value, "limit must be a positive integer")
        if not 1 <= number <= LIMIT_MAX:
            raise PydanticCustomError(
                "limit_range", "limit must be between 1 and {maximum}", {"maximum": LIMIT_MAX}
            )
        return number

    @field_validator("skip", mode="plain")
    @classmethod
    def _skip(cls, value: Any) -> int:
        return _non_negative_int(value, "skip must be a non-negative integer")


def _non_negative_int(value: Any, message: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    if isinstance(value, str) and DIGITS_PATTERN.match(value):
        return int(value)
    raise PydanticCustomError("integer_format", message)


class ExpenseIdParams(BaseModel):
    id: str

    @field_validator("id", mode="plain")
    @classmethod
    def _id(cls, value: Any) -> str:
        if not isinstance(value, str) or not OBJECT_ID_PATTERN.match(value):
            raise PydanticCustomError("expense_id", "Invalid expense ID format")
        return value


# --- Stored record ---

class Expense(BaseModel):
    """
    Represents a single stored expense record as exposed by the API.
    """
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: str
    amount: float
    category: str
    description: str
    date: datetime
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Expense":
        """Builds the API representation from a MongoDB document (``_id`` becomes ``id``)."""
        return cls(
            id=str(doc["_id"]),
            amount=doc["amount"],
            category=doc["category"],
            description=doc["description"],
            date=_as_utc(doc["date"]),
            createdAt=_as_utc(doc["createdAt"]),
            updatedAt=_as_utc(doc["updatedAt"]),
        )


def _as_utc(value: datetime) -> datetime:
    # Motor returns naive UTC datetimes unless the client is tz_aware
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
