# app/db/crud_accounts.py
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session
from app.db.base import utcnow
from app.db.models import TwitterAccount

def get_account(db: Session, account_id: int) -> Optional[TwitterAccount]:
    return db.get(TwitterAccount, account_id)

def get_account_by_twitter_id(db: Session, twitter_id: str) -> Optional[TwitterAccount]:
    return db.query(TwitterAccount).filter(TwitterAccount.twitter_id == twitter_id).first()

def list_accounts(db: Session, user_id: int) -> List[TwitterAccount]:
    return (
        db.query(TwitterAccount)
        .filter(TwitterAccount.user_id == user_id)
        .order_by(TwitterAccount.created_at.desc())
        .all()
    )

def upsert_account(
    db: Session,
    user_id: int,
    profile: Dict[str, Any],
    access_token: str,
    refresh_token: Optional[str] = None,
    expires_in: Optional[int] = None,
) -> TwitterAccount:
    """Create or refresh the account row for a profile returned by /2/users/me.

    Raises ValueError when the X account is already linked to another user.
    """
    twitter_id = str(profile["id"])
    acct = get_account_by_twitter_id(db, twitter_id)
    if acct and acct.user_id != user_id:
        raise ValueError("This X account is already linked to another user.")
    if not acct:
        acct = TwitterAccount(user_id=user_id, twitter_id=twitter_id)

    metrics = profile.get("public_metrics") or {}
    acct.username = profile.get("username", "")
    acct.display_name = profile.get("name") or profile.get("username", "")
    acct.profile_image_url = profile.get("profile_image_url")
    acct.follower_count = metrics.get("followers_count", 0)
    acct.following_count = metrics.get("following_count", 0)
    acct.access_token = access_token
    # X only rotates the refresh token on some grants; keep the old one otherwise
    if refresh_token:
        acct.refresh_token = refresh_token
    acct.token_expires_at = utcnow() + timedelta(seconds=expires_in) if expires_in else None
    acct.is_active = True
    db.add(acct)
    db.commit()
    db.refresh(acct)
    return acct
