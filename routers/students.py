import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload
from database import get_db
from models.students import Student
from models.classes import SchoolClass
from models.payments import TuitionPayment
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

from schemas.payments import StatusOut, TuitionPaymentOut
from security import Principal, get_current_principal, require_administrator
from services import ledger
from services.errors import NotFound
from services.ledger import PaymentKind
from services.periods import encode_period
from services.reconciliation import entity_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/students", tags=["Students"])


# =======================
# PYDANTIC SCHEMAS
# =======================
class StudentCreate(BaseModel):
    first_name: str
    last_name: str
    father_name: str
    grandfather_name: str
    student_code: str
    birth_date: date
    gender: str = Field(..., pattern="^(male|female)$")
    parent_phone: str
    address: Optional[str] = None
    class_id: int
    base_fee: float = Field(0.0, ge=0)


class StudentUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    father_name: Optional[str] = None
    grandfather_name: Optional[str] = None
    student_code: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[str] = Field(None, pattern="^(male|female)$")
    parent_phone: Optional[str] = None
    address: Optional[str] = None
    status: Optional[str] = Field(None, pattern="^(active|graduated|dropped_out)$")
    class_id: Optional[int] = None
    base_fee: Optional[float] = Field(None, ge=0)


class ClassSimpleOut(BaseModel):
    id: int
    name: str
    academic_year: str

    class Config:
        from_attributes = True


class StudentOut(BaseModel):
    id: int
    student_code: str
    first_name: str
    last_name: str
    father_name: str
    grandfather_name: str
    birth_date: date
    gender: str
    parent_phone: str
    address: Optional[str] = None
    status: str
    class_id: int
    class_val: Optional[ClassSimpleOut] = None
    base_fee: float
    created_at: datetime

    class Config:
        from_attributes = True


# =======================
# HELPERS
# =======================
def _get_student(db: Session, student_id: int) -> Student:
    student = db.query(Student).options(joinedload(Student.class_val))\
        .filter(Student.id == student_id).first()
    if not student:
        raise NotFound("Student not found")
    return student


def _check_class(db: Session, class_id: int):
    if not db.query(SchoolClass).filter(SchoolClass.id == class_id).first():
        raise NotFound("Class not found")


def _code_taken(db: Session, student_code: str) -> bool:
    return db.query(Student).filter(Student.student_code == student_code).first() is not None


# ===============================
#   1. SPECIFIC ROUTES (KEEP ON TOP)
# ===============================

@router.get("/class/{class_id}", response_model=List[StudentOut])
def students_by_class(class_id: int, db: Session = Depends(get_db), _: Principal = Depends(get_current_principal)):
    return db.query(Student).options(joinedload(Student.class_val))\
        .filter(Student.class_id == class_id).order_by(Student.id).all()


# ===============================
#   2. STUDENT CRUD OPERATIONS
# ===============================

@router.get("", response_model=List[StudentOut])
def list_students(db: Session = Depends(get_db), _: Principal = Depends(get_current_principal)):
    return db.query(Student).options(joinedload(Student.class_val)).order_by(Student.id).all()


@router.get("/{student_id}", response_model=StudentOut)
def get_student(student_id: int, db: Session = Depends(get_db), _: Principal = Depends(get_current_principal)):
    return _get_student(db, student_id)


@router.post("", response_model=StudentOut)
def add_student(data: StudentCreate, db: Session = Depends(get_db), principal: Principal = Depends(get_current_principal)):
    if _code_taken(db, data.student_code):
        raise HTTPException(status_code=400, detail="Student ID already exists")
    _check_class(db, data.class_id)

    # Only the expected fee is stored; no payment is created automatically
    new_student = Student(**data.model_dump())
    db.add(new_student)
    db.commit()
    logger.info("Student %s (%s) added by %s", new_student.id, new_student.student_code, principal.username)
    return _get_student(db, new_student.id)


@router.put("/{student_id}", response_model=StudentOut)
def update_student(
    student_id: int,
    data: StudentUpdate,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_administrator),
):
    student = _get_student(db, student_id)

    if data.student_code and data.student_code != student.student_code and _code_taken(db, data.student_code):
        raise HTTPException(status_code=400, detail="Student ID already exists")
    if data.class_id is not None:
        _check_class(db, data.class_id)

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(student, field, value)

    db.commit()
    return _get_student(db, student_id)


@router.delete("/{student_id}")
def delete_student(student_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_administrator)):
    student = _get_student(db, student_id)

    # Student and payments go in the same transaction
    removed = db.query(TuitionPayment).filter(TuitionPayment.student_id == student_id)\
        .delete(synchronize_session=False)
    db.delete(student)
    db.commit()

    logger.info("Student %s removed by %s together with %s payments", student_id, principal.username, removed)
    return {"message": "Student removed", "payments_removed": removed}


# ===============================
#   3. PAYMENTS & STATUS
# ===============================

@router.get("/{student_id}/payments", response_model=List[TuitionPaymentOut])
def student_payments(student_id: int, db: Session = Depends(get_db), _: Principal = Depends(get_current_principal)):
    return ledger.list_payments_for_entity(db, PaymentKind.TUITION, student_id)


@router.get("/{student_id}/payments-by-month", response_model=List[TuitionPaymentOut])
def student_payments_by_month(
    student_id: int,
    year: int = Query(...),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
):
    _get_student(db, student_id)
    return ledger.list_payments_for_period(db, PaymentKind.TUITION, student_id, encode_period(year, month))


@router.get("/{student_id}/status", response_model=StatusOut)
def student_payment_status(
    student_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
):
    """Paid as soon as anything was paid for the period; the base fee is reported but not compared."""
    if month is not None and year is None:
        raise HTTPException(status_code=400, detail="Month requires a year")

    student = _get_student(db, student_id)
    st = entity_status(db, PaymentKind.TUITION, student, year=year, month=month)
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
