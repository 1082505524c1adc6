import datetime
import enum

from sqlalchemy import Column, Integer, String, DateTime
from database import Base


class Role(str, enum.Enum):
    ADMIN = "admin"
    ADMINISTRATOR = "administrator"

    def can_modify_records(self) -> bool:
        """Only administrators may edit or delete existing records."""
        return self is Role.ADMINISTRATOR

    def can_change_passwords(self) -> bool:
        return self in (Role.ADMIN, Role.ADMINISTRATOR)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password_hash = Column(String(128), nullable=False)
    role = Column(String(20), nullable=False, default=Role.ADMIN.value)
    created_at = Column(DateTime, default=datetime.datetime.now)
