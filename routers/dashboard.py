from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from database import get_db
from models.students import Student
from models.teachers import Teacher
from models.classes import SchoolClass
from typing import Optional
from datetime import date

from security import Principal, get_current_principal
from services import reports

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("")
def dashboard_view(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    # 1. Basic Counts
    total_students = db.query(Student).count()
    active_students = db.query(Student).filter(Student.status == "active").count()
    total_teachers = db.query(Teacher).count()
    total_classes = db.query(SchoolClass).count()

    # 2. Revenue for the year (by payment date, same as the annual tuition report)
    year = year or date.today().year
    revenue = reports.annual_tuition_report(db, year)["total_paid"]

    return {
        "user": {"username": principal.username, "role": principal.role.value},
        "stats": {
            "students": total_students,
            "active_students": active_students,
            "teachers": total_teachers,
            "classes": total_classes,
            "revenue": revenue,
            "year": year,
        },
    }


@router.get("/financial")
def financial_view(
    year: int,
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
):
    """Income, salaries, operating costs and balance for a month or a year."""
    return reports.financial_summary(db, year, month)
