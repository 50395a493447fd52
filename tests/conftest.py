import os
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pytest
from cryptography.fernet import Fernet

# must be set before app.config is imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ.setdefault("FERNET_KEY", Fernet.generate_key().decode())

from app.db.base import Base, SessionLocal, engine  # noqa: E402
from app.db import crud  # noqa: E402
from app.db.models import TwitterAccount  # noqa: E402

NOW = datetime(2026, 1, 1, 12, 0, 0)


class FakeTokenProvider:
    def __init__(self, result: Optional[Dict[str, Any]] = None, exc: Optional[Exception] = None):
        self.result = result if result is not None else {"access_token": "fresh-token", "refresh_token": "rotated-refresh"}
        self.exc = exc
        self.calls: List[str] = []

    def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        self.calls.append(refresh_token)
        if self.exc:
            raise self.exc
        return self.result


class FakePoster:
    def __init__(self, exc: Optional[Exception] = None, returns_id: bool = True, fail_on: Optional[set] = None):
        self.exc = exc
        self.returns_id = returns_id
        self.fail_on = fail_on or set()
        self.calls: List[tuple] = []

    def post(self, access_token: str, text: str) -> Optional[str]:
        self.calls.append((access_token, text))
        if self.exc and (not self.fail_on or text in self.fail_on):
            raise self.exc
        if not self.returns_id:
            return None
        return f"x-{len(self.calls)}"


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db):
    return crud.create_user(db, email="owner@example.com")


@pytest.fixture
def make_account(db, user):
    counter = {"n": 0}

    def _make(access_token: str = "valid-token", refresh_token: Optional[str] = "refresh-1",
              token_expires_at: Optional[datetime] = NOW + timedelta(hours=1)) -> TwitterAccount:
        counter["n"] += 1
        acct = TwitterAccount(user_id=user.id, twitter_id=f"tw-{counter['n']}", username=f"handle{counter['n']}",
                              display_name="Handle", token_expires_at=token_expires_at)
        acct.access_token = access_token
        acct.refresh_token = refresh_token
        db.add(acct)
        db.commit()
        db.refresh(acct)
        return acct

    return _make


@pytest.fixture
def make_tweet(db, user):
    def _make(account_id: int, content: str = "hello world", scheduled_for: Optional[datetime] = NOW - timedelta(minutes=5),
              status: str = "scheduled", approval_status: str = "approved"):
        return crud.create_tweet(db, {
            "user_id": user.id,
            "twitter_account_id": account_id,
            "content": content,
            "scheduled_for": scheduled_for,
            "status": status,
            "approval_status": approval_status,
        })

    return _make
