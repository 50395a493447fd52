from datetime import timedelta

import pytest

from app.db.models import TwitterAccount
from app.db.repository import SqlTweetRepository
from app.services.scheduler import SchedulerEngine
from conftest import NOW, FakePoster, FakeTokenProvider


@pytest.fixture
def repo():
    return SqlTweetRepository()


def test_due_query_filters_and_orders(repo, make_account, make_tweet):
    acct = make_account()
    late = make_tweet(acct.id, content="late", scheduled_for=NOW - timedelta(minutes=1))
    early = make_tweet(acct.id, content="early", scheduled_for=NOW - timedelta(hours=2))
    make_tweet(acct.id, content="future", scheduled_for=NOW + timedelta(minutes=1))
    make_tweet(acct.id, content="pending", approval_status="pending")
    make_tweet(acct.id, content="draft", status="draft")
    make_tweet(acct.id, content="posted", status="posted")
    make_tweet(acct.id, content="failed", status="failed")
    make_tweet(acct.id, content="unscheduled", scheduled_for=None)
    on_the_dot = make_tweet(acct.id, content="now", scheduled_for=NOW)

    due = repo.get_scheduled_due_tweets(NOW)

    assert [t.id for t in due] == [early.id, late.id, on_the_dot.id]


def test_due_query_limit_keeps_earliest(repo, make_account, make_tweet):
    acct = make_account()
    ids = [make_tweet(acct.id, scheduled_for=NOW - timedelta(minutes=m)).id for m in (5, 50, 30, 10)]

    due = repo.get_scheduled_due_tweets(NOW, limit=2)

    assert [t.id for t in due] == [ids[1], ids[2]]


def test_rows_are_usable_after_session_closes(repo, make_account, make_tweet):
    acct = make_account()
    t = make_tweet(acct.id, content="detached")

    fetched = repo.get_tweet_by_id(t.id)
    account = repo.get_account_by_id(acct.id)

    assert fetched.content == "detached"
    assert account.access_token == "valid-token"


def test_missing_rows_return_none(repo):
    assert repo.get_tweet_by_id(999) is None
    assert repo.get_account_by_id(999) is None
    assert repo.update_tweet(999, status="failed") is None
    assert repo.update_account(999, is_active=False) is None


def test_update_rejects_unknown_fields(repo, make_account, make_tweet):
    acct = make_account()
    t = make_tweet(acct.id)

    with pytest.raises(ValueError):
        repo.update_tweet(t.id, nope=1)


def test_update_tweet_bumps_updated_at(repo, make_account, make_tweet):
    acct = make_account()
    t = make_tweet(acct.id)
    before = t.updated_at

    updated = repo.update_tweet(t.id, status="failed")

    assert updated.status == "failed"
    assert updated.updated_at >= before


def test_account_tokens_are_encrypted_at_rest(repo, db, make_account):
    acct = make_account(access_token="plain-access", refresh_token="plain-refresh")

    repo.update_account(acct.id, access_token="new-access", refresh_token=None)

    row = db.get(TwitterAccount, acct.id)
    db.refresh(row)
    assert row.access_token_encrypted != "new-access"
    assert row.access_token == "new-access"
    assert row.refresh_token_encrypted is None
    assert row.refresh_token is None


def test_engine_against_sql_repository(repo, make_account, make_tweet):
    acct = make_account(access_token="old-token", refresh_token="r-1", token_expires_at=NOW - timedelta(hours=1))
    t = make_tweet(acct.id, content="ship it")
    future = make_tweet(acct.id, scheduled_for=NOW + timedelta(hours=1))
    poster = FakePoster()
    engine = SchedulerEngine(repo, FakeTokenProvider({"access_token": "fresh-token"}), poster, clock=lambda: NOW)

    engine.process_due_tweets()

    posted = repo.get_tweet_by_id(t.id)
    account = repo.get_account_by_id(acct.id)
    assert posted.status == "posted"
    assert posted.posted_at == NOW
    assert posted.twitter_tweet_id == "x-1"
    assert account.access_token == "fresh-token"
    assert account.refresh_token == "r-1"
    assert account.token_expires_at == NOW + timedelta(hours=2)
    assert poster.calls == [("fresh-token", "ship it")]
    assert repo.get_tweet_by_id(future.id).status == "scheduled"
    assert engine.process_due_tweets()["processed"] == 0


def test_undecryptable_account_does_not_block_the_queue(repo, db, make_account, make_tweet):
    bad = make_account(access_token="lost-key")
    good = make_account(access_token="good-token")
    row = db.get(TwitterAccount, bad.id)
    row.access_token_encrypted = "not-a-fernet-token"
    db.commit()
    stuck = make_tweet(bad.id, content="stuck", scheduled_for=NOW - timedelta(minutes=30))
    fine = make_tweet(good.id, content="fine", scheduled_for=NOW - timedelta(minutes=10))
    poster = FakePoster()
    engine = SchedulerEngine(repo, FakeTokenProvider(), poster, clock=lambda: NOW)

    summary = engine.process_due_tweets()

    assert summary == {"status": "ok", "processed": 2, "posted": 1, "failed": 1}
    assert repo.get_tweet_by_id(stuck.id).status == "failed"
    assert repo.get_tweet_by_id(fine.id).status == "posted"
    assert poster.calls == [("good-token", "fine")]
    assert engine.process_due_tweets()["processed"] == 0
