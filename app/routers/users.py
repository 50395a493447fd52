from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Any, Dict, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.db import crud
from app.deps import get_db

router = APIRouter(prefix="/users", tags=["users"])

class UserIn(BaseModel):
    email: Optional[str] = None

@router.post("")
def create_user(body: UserIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        u = crud.create_user(db, email=body.email)
    except IntegrityError:
        db.rollback()
        raise HTTPException(409, "Email already registered")
    return {"id": u.id, "email": u.email}

@router.get("/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    u = crud.get_user(db, user_id)
    if not u:
        raise HTTPException(404, "User not found")
    return {"id": u.id, "email": u.email, "created_at": u.created_at.isoformat() if u.created_at else None}
