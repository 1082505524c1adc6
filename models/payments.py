"""
Payment ledger tables.

Both tables carry a ``period`` key of the form "YYYY/M" (month never
zero-padded). Salary payments are unique per (teacher, period); tuition
payments may repeat for a period so partial payments accumulate.
"""
import datetime
import enum

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    BANK = "bank"
    ONLINE = "online"


class PaymentType(str, enum.Enum):
    TUITION = "tuition"
    BASE = "base"


# 1. TUITION PAYMENTS (student -> school)
class TuitionPayment(Base):
    __tablename__ = "tuition_payments"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    period = Column(String(20), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    method = Column(String(20), nullable=False)
    payment_type = Column(String(20), default=PaymentType.TUITION.value)
    description = Column(String(500), default="")

    # Date the money changed hands; may be back-dated, unlike created_at
    date = Column(DateTime, default=datetime.datetime.now, index=True)

    recorded_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.datetime.now)

    student = relationship("models.students.Student")
    recorder = relationship("models.users.User")


# 2. SALARY PAYMENTS (school -> teacher)
class SalaryPayment(Base):
    __tablename__ = "salary_payments"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=False, index=True)
    period = Column(String(20), nullable=False)
    amount = Column(Float, nullable=False)
    method = Column(String(20), nullable=False)
    date = Column(DateTime, default=datetime.datetime.now, index=True)

    recorded_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.datetime.now)

    # One salary payment per teacher per month
    __table_args__ = (
        UniqueConstraint("teacher_id", "period", name="uq_salary_teacher_period"),
    )

    teacher = relationship("models.teachers.Teacher")
    recorder = relationship("models.users.User")
