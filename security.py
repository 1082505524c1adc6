"""
Authentication helpers: password hashing, signed access tokens and the
per-request ``Principal``.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import Role, User
from services.errors import Forbidden

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


# ===========================
#     PASSWORDS
# ===========================

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored hash is not a bcrypt hash
        return False


# ===========================
#     SESSION PRINCIPAL
# ===========================

@dataclass(frozen=True)
class Principal:
    """Who is making the current request."""
    user_id: int
    username: str
    role: Role

    def require_administrator(self):
        if not self.role.can_modify_records():
            raise Forbidden("Access denied")


def create_access_token(user: User, expires_minutes: Optional[int] = None) -> str:
    expire = datetime.utcnow() + timedelta(
        minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode = {"sub": str(user.id), "username": user.username, "role": user.role, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    x_auth_token: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Principal:
    token = credentials.credentials if credentials else x_auth_token
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token, authorization denied")

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token is not valid")

    # Role comes from the database so a demoted user loses access immediately
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token is not valid")

    return Principal(user_id=user.id, username=user.username, role=Role(user.role))


def require_administrator(principal: Principal = Depends(get_current_principal)) -> Principal:
    principal.require_administrator()
    return principal
