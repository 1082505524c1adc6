from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from database import get_db

from schemas.payments import PaymentUpdate, SalaryPaymentCreate, SalaryPaymentOut
from security import Principal, get_current_principal
from services import ledger, reports
from services.ledger import PaymentKind

router = APIRouter(prefix="/api/teacher-payments", tags=["Salary Payments"])


@router.post("", response_model=SalaryPaymentOut)
def create_salary_payment(
    payment: SalaryPaymentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return ledger.record_salary_payment(
        db,
        teacher_id=payment.teacher_id,
        period=payment.period,
        amount=payment.amount,
        method=payment.method,
        recorded_by=principal.user_id,
        payment_date=payment.payment_date,
    )


@router.put("/{payment_id}", response_model=SalaryPaymentOut)
def update_salary_payment(
    payment_id: int,
    data: PaymentUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return ledger.update_payment(
        db, PaymentKind.SALARY, payment_id, principal,
        period=data.period, amount=data.amount, method=data.method,
    )


@router.delete("/{payment_id}")
def delete_salary_payment(payment_id: int, db: Session = Depends(get_db), principal: Principal = Depends(get_current_principal)):
    ledger.delete_payment(db, PaymentKind.SALARY, payment_id, principal)
    return {"message": "Payment removed"}


# --- REPORTS ---
@router.get("/reports/monthly")
def monthly_salary_report(
    year: int,
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
):
    return reports.monthly_salary_report(db, year, month)


@router.get("/reports/annual")
def annual_salary_report(year: int, db: Session = Depends(get_db), _: Principal = Depends(get_current_principal)):
    return reports.annual_salary_report(db, year)
