import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from database import get_db
from models.teachers import Teacher
from models.payments import SalaryPayment
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

from schemas.payments import SalaryPaymentOut, StatusOut
from security import Principal, get_current_principal, require_administrator
from services import ledger
from services.errors import EntityInUse, NotFound
from services.ledger import PaymentKind
from services.periods import encode_period
from services.reconciliation import entity_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/teachers", tags=["Teachers"])


# --- SCHEMAS ---
class TeacherCreate(BaseModel):
    first_name: str
    last_name: str
    father_name: str
    birth_date: date
    specialization: str
    degree: str
    experience: int = Field(..., ge=0)
    monthly_salary: float = Field(..., ge=0)
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None


class TeacherUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    father_name: Optional[str] = None
    birth_date: Optional[date] = None
    specialization: Optional[str] = None
    degree: Optional[str] = None
    experience: Optional[int] = Field(None, ge=0)
    monthly_salary: Optional[float] = Field(None, ge=0)
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class TeacherOut(TeacherCreate):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


def _get_teacher(db: Session, teacher_id: int) -> Teacher:
    teacher = db.query(Teacher).filter(Teacher.id == teacher_id).first()
    if not teacher:
        raise NotFound("Teacher not found")
    return teacher


# --- 1. TEACHER CRUD ---
@router.get("", response_model=List[TeacherOut])
def list_teachers(db: Session = Depends(get_db), _: Principal = Depends(get_current_principal)):
    return db.query(Teacher).order_by(Teacher.id).all()


@router.get("/{teacher_id}", response_model=TeacherOut)
def get_teacher(teacher_id: int, db: Session = Depends(get_db), _: Principal = Depends(get_current_principal)):
    return _get_teacher(db, teacher_id)


@router.post("", response_model=TeacherOut)
def create_teacher(data: TeacherCreate, db: Session = Depends(get_db), principal: Principal = Depends(get_current_principal)):
    teacher = Teacher(**data.model_dump())
    db.add(teacher)
    db.commit()
    db.refresh(teacher)
    logger.info("Teacher %s added by %s", teacher.id, principal.username)
    return teacher


@router.put("/{teacher_id}", response_model=TeacherOut)
def update_teacher(
    teacher_id: int,
    data: TeacherUpdate,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_administrator),
):
    teacher = _get_teacher(db, teacher_id)
    # Explicit zero salary / experience is a real value, only None means "keep"
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(teacher, field, value)
    db.commit()
    db.refresh(teacher)
    return teacher


@router.delete("/{teacher_id}")
def delete_teacher(teacher_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_administrator)):
    teacher = _get_teacher(db, teacher_id)

    paid = db.query(SalaryPayment).filter(SalaryPayment.teacher_id == teacher_id).count()
    if paid:
        raise EntityInUse(f"Cannot delete teacher with {paid} salary payments")

    db.delete(teacher)
    db.commit()
    logger.info("Teacher %s removed by %s", teacher_id, principal.username)
    return {"message": "Teacher removed"}


# --- 2. PAYMENTS & STATUS ---
@router.get("/{teacher_id}/payments", response_model=List[SalaryPaymentOut])
def teacher_payments(teacher_id: int, db: Session = Depends(get_db), _: Principal = Depends(get_current_principal)):
    return ledger.list_payments_for_entity(db, PaymentKind.SALARY, teacher_id)


@router.get("/{teacher_id}/status", response_model=StatusOut)
def teacher_payment_status(
    teacher_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
):
    if month is not None and year is None:
        raise HTTPException(status_code=400, detail="Month requires a year")

    teacher = _get_teacher(db, teacher_id)
    st = entity_status(db, PaymentKind.SALARY, teacher, year=year, month=month)
    return StatusOut(
        expected=st.expected,
        total_paid=st.total_paid,
        remaining=st.remaining,
        payment_count=st.payment_count,
        status=st.status.value,
        period=encode_period(year, month) if month is not None else None,
        month=month,
        year=year,
    )
