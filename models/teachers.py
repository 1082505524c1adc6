import datetime

from sqlalchemy import Column, Integer, String, Date, DateTime, Float
from database import Base


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    father_name = Column(String(100), nullable=False)
    birth_date = Column(Date, nullable=False)

    specialization = Column(String(100), nullable=False)
    degree = Column(String(100), nullable=False)
    experience = Column(Integer, nullable=False)  # years
    monthly_salary = Column(Float, nullable=False, default=0.0)

    phone = Column(String(20), nullable=False)
    email = Column(String(120), nullable=True)
    address = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.datetime.now)
