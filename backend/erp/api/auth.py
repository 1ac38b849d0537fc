"""Center account registration, login and profile."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from backend.erp.core.security import create_access_token, get_current_user, get_password_hash, verify_password
from backend.erp.db.session import get_db
from backend.erp.models.user import User
from backend.erp.schemas.user import UserCreate, UserRead

router = APIRouter(prefix="/auth", tags=["auth"])

logger = structlog.get_logger(__name__)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


def _find_account(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register_user(user_in: UserCreate, db: Session = Depends(get_db)):
    if _find_account(db, user_in.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    account = User(
        email=user_in.email.lower(),
        hashed_password=get_password_hash(user_in.password),
        full_name=user_in.full_name,
        organization_name=user_in.organization_name,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info("account_registered", user_id=account.id)
    return account


@router.post("/login")
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    account = _find_account(db, credentials.email)
    valid = (
        account is not None
        and account.hashed_password
        and verify_password(credentials.password, account.hashed_password)
    )
    if not valid:
        logger.info("login_failed", email=credentials.email)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credentials")
    if not account.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User is inactive")

    return {"access_token": create_access_token(user_id=account.id), "token_type": "bearer"}


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user
