"""API Routes for expenses"""
import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status

from services import expense_query
from services.expenses_service import ExpenseStore
from utils.errors import DatabaseUnavailable

router = APIRouter()
logger = logging.getLogger(__name__)


# --- Dependency Function ---
def get_expense_store(request: Request) -> ExpenseStore:
    """Dependency to get the expense store from the application state."""
    store = getattr(request.app.state, "expense_store", None)
    if store is None:
        logger.error("Expense store not found in application state. Check MongoDB connection.")
        raise DatabaseUnavailable()
    return store


ExpenseStoreDep = Annotated[ExpenseStore, Depends(get_expense_store)]


# --- API Routes ---

@router.get("/expenses", summary="List Expenses",
            description="Retrieves expenses matching the optional date range and category, newest first.")
async def list_expenses(
    store: ExpenseStoreDep,
    from_param: Optional[str] = Query(None, alias="from", description="Start date (YYYY-MM-DD), inclusive."),
    to_param: Optional[str] = Query(None, alias="to", description="End date (YYYY-MM-DD), inclusive of the whole day."),
    category: Optional[str] = Query(None, description="One of Food, Transport, Shopping, Bills, Other."),
) -> Dict[str, Any]:
    expenses, count = await expense_query.query_expenses(store, from_param, to_param, category)
    return {
        "success": True,
        "count": count,
        "data": [expense.to_json() for expense in expenses],
    }


@router.get("/expenses/{expense_id}", summary="Get Expense")
async def get_expense(expense_id: str, store: ExpenseStoreDep) -> Dict[str, Any]:
    expense = await store.get(expense_id)
    return {"success": True, "data": expense.to_json()}


@router.post("/expenses", status_code=status.HTTP_201_CREATED, summary="Create Expense")
async def create_expense(store: ExpenseStoreDep, payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    logger.info(f"POST /expenses called with fields: {', '.join(sorted(payload)) or 'none'}")
    expense = await store.create(payload)
    return {
        "success": True,
        "message": "Expense created successfully",
        "data": expense.to_json(),
    }


@router.put("/expenses/{expense_id}", summary="Update Expense",
            description="Partially updates an expense; only the supplied fields are validated and changed.")
async def update_expense(
    expense_id: str,
    store: ExpenseStoreDep,
    payload: Optional[Dict[str, Any]] = Body(None),
) -> Dict[str, Any]:
    expense = await store.update(expense_id, payload)
    return {
        "success": True,
        "message": "Expense updated successfully",
        "data": expense.to_json(),
    }


@router.delete("/expenses/{expense_id}", summary="Delete Expense")
async def delete_expense(expense_id: str, store: ExpenseStoreDep) -> Dict[str, Any]:
    logger.warning(f"DELETE /expenses/{expense_id} called.")
    expense = await store.delete(expense_id)
    return {
        "success": True,
        "message": "Expense deleted successfully",
        "data": expense.to_json(),
    }
