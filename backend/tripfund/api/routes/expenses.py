"""
Expense management routes.
"""
from fastapi import APIRouter, Depends, status
from typing import List
from tripfund.models.user import User
from tripfund.schemas.expense import ExpenseCreate, ExpenseResponse, ExpenseUpdate
from tripfund.services.expense_service import ExpenseService
from tripfund.api.dependencies import get_current_user, get_expense_service

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.get("/{trip_id}", response_model=List[ExpenseResponse])
async def list_expenses(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service)
):
    """Get all expenses of a trip in the order they were recorded."""
    return service.list_expenses(trip_id, current_user.id)


@router.post("/{trip_id}", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    trip_id: int,
    expense_data: ExpenseCreate,
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service)
):
    """Record an expense and how it is shared."""
    return service.record_expense(trip_id, current_user.id, expense_data)


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: int,
    expense_data: ExpenseUpdate,
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service)
):
    """Edit an expense. Given participants replace the old ones."""
    return service.update_expense(expense_id, current_user.id, expense_data)


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: int,
    current_user: User = Depends(get_current_user),
    service: ExpenseService = Depends(get_expense_service)
):
    """Delete an expense."""
    service.delete_expense(expense_id, current_user.id)
    return {"message": "Expense deleted successfully"}
