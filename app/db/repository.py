# app/db/repository.py
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, List, Optional, Type

from sqlalchemy import and_
from sqlalchemy.orm import Session, sessionmaker
from app.db.base import SessionLocal
from app.db.models import ApprovalStatus, Tweet, TweetStatus, TwitterAccount


class SqlTweetRepository:
    """Tweet/account persistence used by the scheduler engine.

    Every call runs in its own short-lived session and returns detached rows,
    so the scheduler thread never shares a session with request handlers.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()

    def get_scheduled_due_tweets(self, now: datetime, limit: Optional[int] = None) -> List[Tweet]:
        """Approved+scheduled tweets whose time has come, earliest first."""
        with self._session() as db:
            q = (
                db.query(Tweet)
                .filter(
                    and_(
                        Tweet.status == TweetStatus.SCHEDULED.value,
                        Tweet.approval_status == ApprovalStatus.APPROVED.value,
                        Tweet.scheduled_for.isnot(None),
                        Tweet.scheduled_for <= now,
                    )
                )
                .order_by(Tweet.scheduled_for.asc(), Tweet.id.asc())
            )
            if limit:
                q = q.limit(limit)
            rows = q.all()
            db.expunge_all()
            return rows

    def get_tweet_by_id(self, tweet_id: int) -> Optional[Tweet]:
        return self._get(Tweet, tweet_id)

    def update_tweet(self, tweet_id: int, **fields: Any) -> Optional[Tweet]:
        return self._update(Tweet, tweet_id, fields)

    def get_account_by_id(self, account_id: int) -> Optional[TwitterAccount]:
        return self._get(TwitterAccount, account_id)

    def update_account(self, account_id: int, **fields: Any) -> Optional[TwitterAccount]:
        return self._update(TwitterAccount, account_id, fields)

    def _get(self, model: Type, row_id: int):
        with self._session() as db:
            obj = db.get(model, row_id)
            if obj is not None:
                db.expunge(obj)
            return obj

    def _update(self, model: Type, row_id: int, fields: dict):
        unknown = [k for k in fields if not hasattr(model, k)]
        if unknown:
            raise ValueError(f"{model.__name__} has no field(s): {', '.join(unknown)}")
        with self._session() as db:
            obj = db.get(model, row_id)
            if obj is None:
                return None
            for k, v in fields.items():
                setattr(obj, k, v)
            db.commit()
            db.refresh(obj)
            db.expunge(obj)
            return obj
