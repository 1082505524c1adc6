import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel

from database import get_db
from models.users import User
from security import Principal, create_access_token, get_current_principal, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


# Login Data Model
class LoginSchema(BaseModel):
    username: str
    password: str


@router.post("/login")
def login(data: LoginSchema, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == data.username).first()
    if not user or not verify_password(data.password, user.password_hash):
        logger.warning("Failed login for username %r", data.username)
        raise HTTPException(status_code=400, detail="Invalid credentials")

    token = create_access_token(user)
    logger.info("User %s logged in", user.username)
    return {
        "token": token,
        "token_type": "bearer",
        "user": {"id": user.id, "username": user.username, "role": user.role},
    }


@router.get("/me")
def current_user(principal: Principal = Depends(get_current_principal)):
    return {"id": principal.user_id, "username": principal.username, "role": principal.role.value}
