import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field

from database import get_db
from models.users import Role, User
from security import Principal, get_current_principal, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)


@router.put("/password/{username}")
def change_password(
    username: str,
    data: PasswordChange,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Change the password of the built-in admin / administrator account."""
    if username not in {r.value for r in Role}:
        raise HTTPException(status_code=400, detail="Invalid user type")
    if not principal.role.can_change_passwords():
        raise HTTPException(status_code=403, detail="Access denied")

    user = db.query(User).filter(User.username == username).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if not verify_password(data.current_password, user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    user.password_hash = hash_password(data.new_password)
    db.commit()
    logger.info("Password for %s changed by %s", username, principal.username)
    return {"message": "Password changed successfully"}
