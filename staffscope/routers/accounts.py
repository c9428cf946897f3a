from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from staffscope.db.session import get_db
from staffscope.models.security import User
from staffscope.schemas.security import PrincipalOut, SignupRequest
from staffscope.services.accounts import register_principal

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=PrincipalOut, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, db: Session = Depends(get_db)) -> User:
    return register_principal(db, payload.username, payload.password)
