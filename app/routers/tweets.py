# app/routers/tweets.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.db import crud, crud_accounts
from app.db.models import ApprovalStatus, Tweet, TweetStatus
from app.deps import get_db, get_scheduler
from app.errors import NotFoundError
from app.services.content import MAX_TWEET_CHARS
from app.services.scheduler import SchedulerEngine

router = APIRouter(prefix="/tweets", tags=["tweets"])

class TweetIn(BaseModel):
    user_id: int
    twitter_account_id: int
    content: str = Field(..., min_length=1, max_length=MAX_TWEET_CHARS)
    scheduled_for: Optional[datetime] = None
    topics: Optional[List[str]] = None

class TweetUpdateIn(BaseModel):
    content: Optional[str] = Field(None, min_length=1, max_length=MAX_TWEET_CHARS)
    topics: Optional[List[str]] = None

class ScheduleIn(BaseModel):
    scheduled_for: datetime

def _naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt

def tweet_out(t: Tweet) -> Dict[str, Any]:
    return {
        "id": t.id,
        "user_id": t.user_id,
        "twitter_account_id": t.twitter_account_id,
        "content": t.content,
        "status": t.status,
        "approval_status": t.approval_status,
        "scheduled_for": t.scheduled_for.isoformat() if t.scheduled_for else None,
        "posted_at": t.posted_at.isoformat() if t.posted_at else None,
        "twitter_tweet_id": t.twitter_tweet_id,
        "topics": t.topics,
        "engagement_data": t.engagement_data,
        "created_at": t.created_at.isoformat() if t.created_at else None,
    }

def _get_or_404(db: Session, tweet_id: int) -> Tweet:
    t = crud.get_tweet(db, tweet_id)
    if not t:
        raise HTTPException(404, "Tweet not found")
    return t

@router.get("")
def list_tweets(
    user_id: int,
    status: Optional[TweetStatus] = None,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    rows = crud.list_tweets(db, user_id, status=status.value if status else None, limit=limit)
    return [tweet_out(t) for t in rows]

@router.post("")
def create_tweet(body: TweetIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    acct = crud_accounts.get_account(db, body.twitter_account_id)
    if not acct or acct.user_id != body.user_id:
        raise HTTPException(400, "Unknown twitter_account_id for this user")
    # a user-written draft still goes through approval
    t = crud.create_tweet(db, {
        "user_id": body.user_id,
        "twitter_account_id": body.twitter_account_id,
        "content": body.content,
        "scheduled_for": _naive_utc(body.scheduled_for) if body.scheduled_for else None,
        "topics": body.topics,
    })
    return tweet_out(t)

@router.get("/{tweet_id}")
def get_tweet(tweet_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    return tweet_out(_get_or_404(db, tweet_id))

@router.patch("/{tweet_id}")
def update_tweet(tweet_id: int, body: TweetUpdateIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    t = _get_or_404(db, tweet_id)
    if t.status == TweetStatus.POSTED.value:
        raise HTTPException(409, "Tweet was already posted")
    fields = body.model_dump(exclude_unset=True)
    if "content" in fields and fields["content"] is None:
        raise HTTPException(422, "content cannot be null")
    return tweet_out(crud.update_tweet(db, t, **fields))

@router.post("/{tweet_id}/approve")
def approve(tweet_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    t = _get_or_404(db, tweet_id)
    if t.status == TweetStatus.POSTED.value:
        raise HTTPException(409, "Tweet was already posted")
    fields: Dict[str, Any] = {"approval_status": ApprovalStatus.APPROVED.value}
    # re-approving a failed tweet puts it back in the queue
    if t.scheduled_for is not None:
        fields["status"] = TweetStatus.SCHEDULED.value
    return tweet_out(crud.update_tweet(db, t, **fields))

@router.post("/{tweet_id}/reject")
def reject(tweet_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    t = _get_or_404(db, tweet_id)
    if t.status == TweetStatus.POSTED.value:
        raise HTTPException(409, "Tweet was already posted")
    fields: Dict[str, Any] = {"approval_status": ApprovalStatus.REJECTED.value}
    if t.status == TweetStatus.SCHEDULED.value:
        fields["status"] = TweetStatus.DRAFT.value
    return tweet_out(crud.update_tweet(db, t, **fields))

@router.post("/{tweet_id}/schedule")
def schedule(tweet_id: int, body: ScheduleIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    t = _get_or_404(db, tweet_id)
    if t.status == TweetStatus.POSTED.value:
        raise HTTPException(409, "Tweet was already posted")
    return tweet_out(crud.update_tweet(
        db, t,
        scheduled_for=_naive_utc(body.scheduled_for),
        status=TweetStatus.SCHEDULED.value,
        approval_status=ApprovalStatus.APPROVED.value,
    ))

@router.post("/{tweet_id}/post-now")
def post_now(tweet_id: int, sched: SchedulerEngine = Depends(get_scheduler)) -> Dict[str, Any]:
    try:
        t = sched.schedule_immediate_post(tweet_id)
    except NotFoundError:
        raise HTTPException(404, "Tweet not found")
    return {"message": "Tweet scheduled for immediate posting", "tweet": tweet_out(t)}
