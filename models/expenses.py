import datetime

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from database import Base


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    amount = Column(Float, nullable=False)
    category = Column(String(100), nullable=False)  # Rent, Utilities, Supplies...
    month = Column(Integer, nullable=False)  # 1-12
    year = Column(Integer, nullable=False, index=True)
    description = Column(String(500), nullable=True)

    recorded_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.datetime.now)
