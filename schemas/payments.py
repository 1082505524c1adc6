from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from models.payments import PaymentMethod, PaymentType


# 1. Request bodies
class TuitionPaymentCreate(BaseModel):
    student_id: int
    period: str = Field(..., examples=["1402/7"])  # "year/month", month without leading zero
    amount: float
    method: PaymentMethod
    payment_date: Optional[datetime] = None
    payment_type: PaymentType = PaymentType.TUITION
    description: str = ""


class SalaryPaymentCreate(BaseModel):
    teacher_id: int
    period: str = Field(..., examples=["1402/7"])
    amount: float
    method: PaymentMethod
    payment_date: Optional[datetime] = None


class PaymentUpdate(BaseModel):
    period: Optional[str] = None
    amount: Optional[float] = None
    method: Optional[PaymentMethod] = None


# 2. Responses
class RecorderOut(BaseModel):
    id: int
    username: str

    class Config:
        from_attributes = True


class TuitionPaymentOut(BaseModel):
    id: int
    student_id: int
    period: str
    amount: float
    method: str
    payment_type: str
    description: Optional[str] = ""
    date: datetime
    recorded_by: int
    recorder: Optional[RecorderOut] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SalaryPaymentOut(BaseModel):
    id: int
    teacher_id: int
    period: str
    amount: float
    method: str
    date: datetime
    recorded_by: int
    recorder: Optional[RecorderOut] = None
    created_at: datetime

    class Config:
        from_attributes = True


class StatusOut(BaseModel):
    expected: float
    total_paid: float
    remaining: float
    payment_count: int
    status: str
    period: Optional[str] = None
    month: Optional[int] = None
    year: Optional[int] = None
