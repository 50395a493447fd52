from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Any, Dict, List
from sqlalchemy.orm import Session
from app.db import crud
from app.deps import get_db

router = APIRouter(prefix="/topics", tags=["topics"])

class UserTopicsIn(BaseModel):
    user_id: int
    topic_ids: List[int]

def _topic_out(t) -> Dict[str, Any]:
    return {"id": t.id, "name": t.name, "icon": t.icon, "description": t.description}

@router.get("")
def list_topics(db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    return [_topic_out(t) for t in crud.list_topics(db)]

@router.get("/user")
def user_topics(user_id: int, db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    return [_topic_out(ut.topic) for ut in crud.get_user_topics(db, user_id)]

@router.post("/user")
def set_user_topics(body: UserTopicsIn, db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    rows = crud.set_user_topics(db, body.user_id, body.topic_ids)
    return [_topic_out(ut.topic) for ut in rows]
