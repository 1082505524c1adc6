"""
Payment Ledger - tuition and salary transactions.

Payments are append-mostly: anyone signed in may record one, only an
administrator may change or remove it afterwards.
"""
import datetime
import enum
import logging
import math
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import settings
from models.payments import PaymentMethod, PaymentType, SalaryPayment, TuitionPayment
from models.students import Student
from models.teachers import Teacher
from services.errors import DuplicatePeriod, InvalidAmount, NotFound, StorageFailure
from services.periods import normalize_period

logger = logging.getLogger(__name__)


class PaymentKind(str, enum.Enum):
    TUITION = "tuition"
    SALARY = "salary"

    @property
    def model(self):
        return TuitionPayment if self is PaymentKind.TUITION else SalaryPayment

    @property
    def entity_model(self):
        return Student if self is PaymentKind.TUITION else Teacher

    @property
    def entity_column(self):
        """Foreign key column pointing at the student or teacher."""
        model = self.model
        return model.student_id if self is PaymentKind.TUITION else model.teacher_id

    @property
    def entity_label(self) -> str:
        return "Student" if self is PaymentKind.TUITION else "Teacher"


# =====================
# HELPERS
# =====================

def _check_amount(amount) -> float:
    if amount is None or not math.isfinite(amount) or amount <= 0:
        raise InvalidAmount(f"Amount must be a finite number greater than zero (got {amount})")
    return float(amount)


def _method_value(method) -> str:
    return PaymentMethod(method).value


def _get_entity(db: Session, kind: PaymentKind, entity_id: int):
    entity = db.query(kind.entity_model).filter(kind.entity_model.id == entity_id).first()
    if entity is None:
        raise NotFound(f"{kind.entity_label} not found")
    return entity


def _find_for_period(db: Session, kind: PaymentKind, entity_id: int, period: str):
    return db.query(kind.model).filter(
        kind.entity_column == entity_id,
        kind.model.period == period,
    ).first()


SALARY_PERIOD_CONSTRAINT = "uq_salary_teacher_period"


def _is_salary_period_clash(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    if SALARY_PERIOD_CONSTRAINT in message:
        return True
    # SQLite names the columns instead of the constraint
    return "UNIQUE" in message.upper() and "salary_payments.period" in message


def _commit(db: Session, kind: PaymentKind, entity_id: int, period: str):
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if kind is PaymentKind.SALARY and _is_salary_period_clash(exc):
            # Lost the race against a concurrent insert of the same period
            logger.warning("Unique constraint rejected %s payment for entity %s period %s", kind.value, entity_id, period)
            raise DuplicatePeriod("Payment for this month already exists")
        logger.error("Could not save %s payment for entity %s period %s: %s", kind.value, entity_id, period, exc.orig)
        raise StorageFailure() from exc


# =====================
# WRITE OPERATIONS
# =====================

def record_tuition_payment(
    db: Session,
    student_id: int,
    period: str,
    amount: float,
    method,
    recorded_by: int,
    payment_date: Optional[datetime.datetime] = None,
    payment_type=PaymentType.TUITION,
    description: str = "",
    enforce_unique_period: Optional[bool] = None,
) -> TuitionPayment:
    """
    Record a tuition payment for one student and period.

    Several payments for the same period are allowed and add up, unless
    ``enforce_unique_period`` (or the ENFORCE_UNIQUE_TUITION_PERIOD setting)
    asks for one payment per period.
    """
    _get_entity(db, PaymentKind.TUITION, student_id)
    amount = _check_amount(amount)
    period = normalize_period(period)

    if enforce_unique_period is None:
        enforce_unique_period = settings.ENFORCE_UNIQUE_TUITION_PERIOD
    if enforce_unique_period:
        existing = _find_for_period(db, PaymentKind.TUITION, student_id, period)
        if existing:
            logger.warning("Duplicate tuition payment for student %s period %s", student_id, period)
            raise DuplicatePeriod("Payment for this month and year is already recorded", existing_id=existing.id)

    payment = TuitionPayment(
        student_id=student_id,
        period=period,
        amount=amount,
        method=_method_value(method),
        payment_type=PaymentType(payment_type).value,
        description=description or "",
        date=payment_date or datetime.datetime.now(),
        recorded_by=recorded_by,
    )
    db.add(payment)
    _commit(db, PaymentKind.TUITION, student_id, period)
    db.refresh(payment)

    logger.info("Tuition payment %s recorded: student=%s period=%s amount=%s", payment.id, student_id, period, amount)
    return payment


def record_salary_payment(
    db: Session,
    teacher_id: int,
    period: str,
    amount: float,
    method,
    recorded_by: int,
    payment_date: Optional[datetime.datetime] = None,
) -> SalaryPayment:
    """Record a salary payment; a teacher is paid at most once per period."""
    _get_entity(db, PaymentKind.SALARY, teacher_id)
    amount = _check_amount(amount)
    period = normalize_period(period)

    existing = _find_for_period(db, PaymentKind.SALARY, teacher_id, period)
    if existing:
        logger.warning("Duplicate salary payment for teacher %s period %s", teacher_id, period)
        raise DuplicatePeriod("Payment for this month already exists", existing_id=existing.id)

    payment = SalaryPayment(
        teacher_id=teacher_id,
        period=period,
        amount=amount,
        method=_method_value(method),
        date=payment_date or datetime.datetime.now(),
        recorded_by=recorded_by,
    )
    db.add(payment)
    _commit(db, PaymentKind.SALARY, teacher_id, period)
    db.refresh(payment)

    logger.info("Salary payment %s recorded: teacher=%s period=%s amount=%s", payment.id, teacher_id, period, amount)
    return payment


def get_payment(db: Session, kind: PaymentKind, payment_id: int):
    payment = db.query(kind.model).filter(kind.model.id == payment_id).first()
    if payment is None:
        raise NotFound("Payment not found")
    return payment


def update_payment(
    db: Session,
    kind: PaymentKind,
    payment_id: int,
    actor,
    period: Optional[str] = None,
    amount: Optional[float] = None,
    method=None,
    enforce_unique_period: Optional[bool] = None,
):
    """
    Correct the period, amount or method of a payment.

    Moving a payment into a period that already has one is refused for
    salaries, and for tuition when one payment per period is enforced.
    """
    actor.require_administrator()
    payment = get_payment(db, kind, payment_id)
    entity_id = payment.student_id if kind is PaymentKind.TUITION else payment.teacher_id

    if enforce_unique_period is None:
        enforce_unique_period = settings.ENFORCE_UNIQUE_TUITION_PERIOD
    unique_per_period = kind is PaymentKind.SALARY or enforce_unique_period

    if period is not None:
        period = normalize_period(period)
        if unique_per_period and period != payment.period:
            clash = _find_for_period(db, kind, entity_id, period)
            if clash:
                logger.warning("Update of %s payment %s clashes with payment %s in %s", kind.value, payment_id, clash.id, period)
                raise DuplicatePeriod("Payment for this month already exists", existing_id=clash.id)
        payment.period = period
    if amount is not None:
        payment.amount = _check_amount(amount)
    if method is not None:
        payment.method = _method_value(method)

    _commit(db, kind, entity_id, payment.period)
    db.refresh(payment)
    logger.info("%s payment %s updated by user %s", kind.value.capitalize(), payment_id, actor.user_id)
    return payment


def delete_payment(db: Session, kind: PaymentKind, payment_id: int, actor) -> None:
    actor.require_administrator()
    payment = get_payment(db, kind, payment_id)
    db.delete(payment)
    db.commit()
    logger.info("%s payment %s deleted by user %s", kind.value.capitalize(), payment_id, actor.user_id)


# =====================
# READ OPERATIONS
# =====================

def list_payments_for_entity(db: Session, kind: PaymentKind, entity_id: int) -> List:
    """All payments of one student or teacher, newest payment date first."""
    model = kind.model
    return db.query(model).filter(kind.entity_column == entity_id)\
        .order_by(model.date.desc(), model.id.desc()).all()


def list_payments_for_period(db: Session, kind: PaymentKind, entity_id: int, period: str) -> List:
    # Exact string match; a zero-padded query key is normalized first
    period = normalize_period(period)
    model = kind.model
    return db.query(model).filter(
        kind.entity_column == entity_id,
        model.period == period,
    ).order_by(model.date.desc(), model.id.desc()).all()
