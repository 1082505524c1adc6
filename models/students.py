import datetime

from sqlalchemy import Column, Integer, String, Date, DateTime, Float, ForeignKey
from sqlalchemy.orm import relationship
from database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    # Human-readable identifier printed on cards and receipts
    student_code = Column(String(50), unique=True, index=True, nullable=False)

    # --- PERSONAL INFO ---
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    father_name = Column(String(100), nullable=False)
    grandfather_name = Column(String(100), nullable=False)
    birth_date = Column(Date, nullable=False)
    gender = Column(String(10), nullable=False)  # male, female

    # --- CONTACT ---
    parent_phone = Column(String(20), nullable=False)
    address = Column(String(255), nullable=True)

    # --- ACADEMIC INFO ---
    status = Column(String(20), default="active")  # active, graduated, dropped_out
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)

    # Expected monthly tuition
    base_fee = Column(Float, default=0.0, nullable=False)

    created_at = Column(DateTime, default=datetime.datetime.now)

    # --- RELATIONSHIPS ---
    class_val = relationship("models.classes.SchoolClass")
