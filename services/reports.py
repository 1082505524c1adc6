"""
Reporting Façade - monthly/annual report shapes for the dashboard.

Two different rules decide "which payments belong to month X":

* ``monthly_tuition_report`` / ``annual_tuition_report`` look at the
  payment ``date`` (half-open date range);
* every other report looks at the payment ``period`` key.

A back-dated payment (date in March, period "1402/2") therefore shows up
in different months depending on the report.
"""
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.expenses import Expense
from models.payments import TuitionPayment
from services.ledger import PaymentKind
from services.periods import encode_period, month_date_range, year_date_range
from services.reconciliation import paid_totals_for_period, paid_totals_for_year, reconcile_all

logger = logging.getLogger(__name__)


def _full_name(entity) -> str:
    return f"{entity.first_name} {entity.last_name}"


def _tuition_by_date(db: Session, start, end):
    total, count = db.query(
        func.coalesce(func.sum(TuitionPayment.amount), 0.0),
        func.count(TuitionPayment.id),
    ).filter(
        TuitionPayment.date >= start,
        TuitionPayment.date < end,
    ).one()
    return float(total), int(count)


# =====================
# TUITION (date based)
# =====================

def monthly_tuition_report(db: Session, year: int, month: int) -> dict:
    start, end = month_date_range(year, month)
    total_paid, payment_count = _tuition_by_date(db, start, end)
    return {
        "total_paid": total_paid,
        "payment_count": payment_count,
        "month": int(month),
        "year": int(year),
    }


def annual_tuition_report(db: Session, year: int) -> dict:
    start, end = year_date_range(year)
    total_paid, payment_count = _tuition_by_date(db, start, end)
    return {
        "total_paid": total_paid,
        "payment_count": payment_count,
        "year": int(year),
    }


# =====================
# STUDENTS (period based)
# =====================

def student_period_report(db: Session, year: int, month: Optional[int] = None) -> dict:
    agg = reconcile_all(db, PaymentKind.TUITION, year, month)

    rows = []
    for st in agg.statuses:
        student = st.entity
        rows.append({
            "id": student.id,
            "student_code": student.student_code,
            "name": _full_name(student),
            "class_id": student.class_id,
            "base_fee": student.base_fee or 0.0,
            "expected": st.expected,
            "total_paid": st.total_paid,
            "payment_count": st.payment_count,
            "status": st.status.value,
        })

    return {
        "students": rows,
        "total_paid_amount": agg.total_paid_amount,
        "payment_count": agg.payment_count,
        "paid_count": agg.paid_count,
        "unpaid_count": agg.unpaid_count,
        "period": encode_period(year, month) if month is not None else None,
        "month": int(month) if month is not None else None,
        "year": int(year),
    }


# =====================
# SALARIES (period based)
# =====================

def _salary_report(db: Session, year: int, month: Optional[int]) -> dict:
    agg = reconcile_all(db, PaymentKind.SALARY, year, month)
    annual = month is None

    rows = []
    for st in agg.statuses:
        teacher = st.entity
        row = {
            "id": teacher.id,
            "name": _full_name(teacher),
            "monthly_salary": teacher.monthly_salary or 0.0,
            "total_paid": st.total_paid,
            "remaining": st.remaining,
            "status": st.status.value,
        }
        if annual:
            row["annual_salary"] = st.expected
        rows.append(row)

    return {
        "teachers": rows,
        "total_paid_amount": agg.total_paid_amount,
        "paid_count": agg.paid_count,
        "partial_count": agg.partial_count,
        "unpaid_count": agg.unpaid_count,
        "expected_total": sum(st.expected for st in agg.statuses),
    }


def monthly_salary_report(db: Session, year: int, month: int) -> dict:
    report = _salary_report(db, year, month)
    report["total_monthly_salary"] = report.pop("expected_total")
    report.update({"period": encode_period(year, month), "month": int(month), "year": int(year)})
    return report


def annual_salary_report(db: Session, year: int) -> dict:
    report = _salary_report(db, year, None)
    report["total_annual_salary"] = report.pop("expected_total")
    report["year"] = int(year)
    return report


# =====================
# FINANCIAL SUMMARY
# =====================

def _period_total(db: Session, kind: PaymentKind, year: int, month: Optional[int]) -> float:
    if month is not None:
        totals = paid_totals_for_period(db, kind, year, month)
    else:
        totals = paid_totals_for_year(db, kind, year)
    return float(sum(paid for paid, _count in totals.values()))


def operating_expenses(db: Session, year: int, month: Optional[int] = None) -> float:
    query = db.query(func.coalesce(func.sum(Expense.amount), 0.0)).filter(Expense.year == int(year))
    if month is not None:
        query = query.filter(Expense.month == int(month))
    return float(query.scalar())


def financial_summary(db: Session, year: int, month: Optional[int] = None) -> dict:
    """Income vs. spending for a month (period keys) or a whole year."""
    income = _period_total(db, PaymentKind.TUITION, year, month)
    salaries = _period_total(db, PaymentKind.SALARY, year, month)
    operating = operating_expenses(db, year, month)
    total_expenses = salaries + operating

    logger.debug("Financial summary %s/%s: income=%s expenses=%s", year, month, income, total_expenses)
    return {
        "total_income": income,
        "total_salaries": salaries,
        "total_operating": operating,
        "total_expenses": total_expenses,
        "balance": income - total_expenses,
        "month": int(month) if month is not None else None,
        "year": int(year),
    }
