from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from database import get_db
from typing import Optional

from schemas.payments import PaymentUpdate, TuitionPaymentCreate, TuitionPaymentOut
from security import Principal, get_current_principal
from services import ledger, reports
from services.ledger import PaymentKind

router = APIRouter(prefix="/api/payments", tags=["Tuition Payments"])


# --- API 1: RECORD PAYMENT ---
@router.post("", response_model=TuitionPaymentOut)
def create_payment(
    payment: TuitionPaymentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return ledger.record_tuition_payment(
        db,
        student_id=payment.student_id,
        period=payment.period,
        amount=payment.amount,
        method=payment.method,
        recorded_by=principal.user_id,
        payment_date=payment.payment_date,
        payment_type=payment.payment_type,
        description=payment.description,
    )


# --- API 2: CORRECTIONS (administrator only) ---
@router.put("/{payment_id}", response_model=TuitionPaymentOut)
def update_payment(
    payment_id: int,
    data: PaymentUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return ledger.update_payment(
        db, PaymentKind.TUITION, payment_id, principal,
        period=data.period, amount=data.amount, method=data.method,
    )


@router.delete("/{payment_id}")
def delete_payment(payment_id: int, db: Session = Depends(get_db), principal: Principal = Depends(get_current_principal)):
    ledger.delete_payment(db, PaymentKind.TUITION, payment_id, principal)
    return {"message": "Payment removed"}


# --- API 3: REPORTS ---
@router.get("/reports/monthly")
def monthly_report(
    year: int,
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
):
    """Tuition received in a calendar month, by payment date."""
    return reports.monthly_tuition_report(db, year, month)


@router.get("/reports/annual")
def annual_report(year: int, db: Session = Depends(get_db), _: Principal = Depends(get_current_principal)):
    return reports.annual_tuition_report(db, year)


@router.get("/reports/students")
def students_report(
    year: int,
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
):
    """Per-student paid/unpaid view for a period key (or a whole year)."""
    return reports.student_period_report(db, year, month)
