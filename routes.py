"""API Routes for expenses"""
import logging
from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request

from database import Database
from errors import FieldError, ValidationFailed
from models.expense import ExpenseCreate, ExpenseIdParams, ExpenseQuery, ExpenseTotalQuery, ExpenseUpdate
from models.response import success_response
from models.validation import validate_fields
from services.expense_store import ExpenseStore
from services.expenses_service import ExpenseService

router = APIRouter(prefix="/expenses", tags=["expenses"])
logger = logging.getLogger(__name__)


# --- Dependency Functions ---

def get_expense_service(request: Request) -> ExpenseService:
    """Builds the service on top of the database handle held by the application."""
    database: Database = request.app.state.database
    if not database.is_connected:
        logger.error("Database handle is not connected. Check the MongoDB connection.")
        raise HTTPException(status_code=503, detail="Database service not available.")
    return ExpenseService(ExpenseStore(database.expenses))


async def json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise ValidationFailed(
            [FieldError(field="body", message="Request body must be valid JSON")], source="body"
        ) from exc


def valid_expense_id(expense_id: str) -> str:
    return validate_fields(ExpenseIdParams, {"id": expense_id}, source="params").id


def expense_query(request: Request) -> ExpenseQuery:
    return validate_fields(ExpenseQuery, request.query_params, source="query")


def total_query(request: Request) -> ExpenseTotalQuery:
    return validate_fields(ExpenseTotalQuery, request.query_params, source="query")


def create_payload(payload: Annotated[Any, Depends(json_body)]) -> ExpenseCreate:
    return validate_fields(ExpenseCreate, payload, source="body")


def update_payload(payload: Annotated[Any, Depends(json_body)]) -> ExpenseUpdate:
    return validate_fields(ExpenseUpdate, payload, source="body")


ExpenseServiceDep = Annotated[ExpenseService, Depends(get_expense_service)]
ExpenseIdDep = Annotated[str, Depends(valid_expense_id)]


def health_payload() -> dict:
    return {
        "success": True,
        "message": "Server is running",
        "data": {"timestamp": datetime.now(timezone.utc).isoformat()},
    }


# --- API Routes ---

@router.post("", status_code=201, summary="Create Expense", description="Validates and stores a new expense record.")
async def create_expense(
    service: ExpenseServiceDep,
    expense_in: Annotated[ExpenseCreate, Depends(create_payload)],
):
    logger.info("POST /expenses endpoint called.")
    expense = await service.create_expense(expense_in)
    return success_response(expense, "Expense created successfully", status_code=201)


@router.get(
    "",
    summary="List Expenses",
    description="Lists expenses, optionally filtered by category, sorted by date descending by default.",
)
async def list_expenses(
    service: ExpenseServiceDep,
    query: Annotated[ExpenseQuery, Depends(expense_query)],
):
    logger.info(f"GET /expenses endpoint called. Sorting by '{query.sort_by}' order '{query.order}'")
    expenses = await service.list_expenses(query)
    total = round(sum(expense.amount for expense in expenses), 2)
    return success_response(
        {"expenses": expenses, "total": total, "count": len(expenses)},
        "Expenses retrieved successfully",
    )


@router.get("/total", summary="Expenses Total", description="Sums the amount of all expenses, or of one category.")
async def get_expenses_total(
    service: ExpenseServiceDep,
    query: Annotated[ExpenseTotalQuery, Depends(total_query)],
):
    total = await service.get_total(query.category)
    return success_response({"category": query.category, "total": total}, "Total calculated successfully")


@router.get("/health", tags=["system"], summary="Health Check")
async def expenses_health():
    return health_payload()


@router.get("/{expense_id}", summary="Get Expense")
async def get_expense(service: ExpenseServiceDep, expense_id: ExpenseIdDep):
    expense = await service.get_expense(expense_id)
    return success_response(expense, "Expense retrieved successfully")


@router.put("/{expense_id}", summary="Update Expense", description="Applies a full or partial update to an expense.")
async def update_expense(
    service: ExpenseServiceDep,
    expense_id: ExpenseIdDep,
    update_in: Annotated[ExpenseUpdate, Depends(update_payload)],
):
    logger.info(f"PUT /expenses/{expense_id} endpoint called.")
    expense = await service.update_expense(expense_id, update_in)
    return success_response(expense, "Expense updated successfully")


@router.delete("/{expense_id}", summary="Delete Expense")
async def delete_expense(service: ExpenseServiceDep, expense_id: ExpenseIdDep):
    logger.warning(f"DELETE /expenses/{expense_id} endpoint called.")
    await service.delete_expense(expense_id)
    return success_response(None, "Expense deleted successfully")
