from fastapi import APIRouter, Depends, HTTPException
from typing import Any, Dict, List
from sqlalchemy.orm import Session
from app.db import crud_accounts
from app.db.base import utcnow
from app.db.models import TwitterAccount
from app.deps import get_db

router = APIRouter(prefix="/accounts", tags=["accounts"])

def account_out(a: TwitterAccount) -> Dict[str, Any]:
    # never echo tokens
    return {
        "id": a.id,
        "user_id": a.user_id,
        "twitter_id": a.twitter_id,
        "username": a.username,
        "display_name": a.display_name,
        "profile_image_url": a.profile_image_url,
        "follower_count": a.follower_count,
        "following_count": a.following_count,
        "is_active": a.is_active,
        "token_expires_at": a.token_expires_at.isoformat() if a.token_expires_at else None,
        "token_expired": bool(a.token_expires_at and a.token_expires_at <= utcnow()),
        "can_refresh": bool(a.refresh_token_encrypted),
    }

@router.get("")
def list_accounts(user_id: int, db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    return [account_out(a) for a in crud_accounts.list_accounts(db, user_id)]

@router.delete("/{account_id}")
def disconnect(account_id: int, user_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    acct = crud_accounts.get_account(db, account_id)
    if not acct or acct.user_id != user_id:
        raise HTTPException(404, "Account not found")
    db.delete(acct)
    db.commit()
    return {"message": "Account disconnected successfully"}
