import logging
import math

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from database import get_db
from models.expenses import Expense
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from security import Principal, get_current_principal, require_administrator
from services.errors import InvalidAmount, NotFound

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/expenses", tags=["Monthly Expenses"])


# --- Schemas ---
class ExpenseCreate(BaseModel):
    title: str
    amount: float
    category: str
    month: int = Field(..., ge=1, le=12)
    year: int
    description: Optional[str] = None


class ExpenseUpdate(BaseModel):
    title: Optional[str] = None
    amount: Optional[float] = None
    category: Optional[str] = None
    month: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = None
    description: Optional[str] = None


class ExpenseOut(ExpenseCreate):
    id: int
    recorded_by: int
    created_at: datetime

    class Config:
        from_attributes = True


def _check_amount(amount):
    if amount is not None and (not math.isfinite(amount) or amount <= 0):
        raise InvalidAmount("Expense amount must be a finite number greater than zero")


@router.get("", response_model=List[ExpenseOut])
def list_expenses(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    category: Optional[str] = None,
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
):
    query = db.query(Expense)
    if month:
        query = query.filter(Expense.month == month)
    if year:
        query = query.filter(Expense.year == year)
    if category:
        query = query.filter(Expense.category == category)
    return query.order_by(Expense.created_at.desc(), Expense.id.desc()).all()


@router.post("", response_model=ExpenseOut)
def add_expense(data: ExpenseCreate, db: Session = Depends(get_db), principal: Principal = Depends(get_current_principal)):
    _check_amount(data.amount)
    expense = Expense(**data.model_dump(), recorded_by=principal.user_id)
    db.add(expense)
    db.commit()
    db.refresh(expense)
    logger.info("Expense %s (%s %s) recorded by %s", expense.id, expense.category, expense.amount, principal.username)
    return expense


@router.put("/{expense_id}", response_model=ExpenseOut)
def update_expense(
    expense_id: int,
    data: ExpenseUpdate,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_administrator),
):
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise NotFound("Expense not found")

    _check_amount(data.amount)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(expense, field, value)
    db.commit()
    db.refresh(expense)
    return expense


@router.delete("/{expense_id}")
def delete_expense(expense_id: int, db: Session = Depends(get_db), _: Principal = Depends(require_administrator)):
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise NotFound("Expense not found")
    db.delete(expense)
    db.commit()
    return {"message": "Expense removed"}
