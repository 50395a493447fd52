from datetime import timedelta
from typing import Generator

from fastapi import Request
from app.config import settings
from app.db.base import SessionLocal, engine, Base
from app.db import crud, models  # noqa: F401  (registers tables on Base)
from app.db.repository import SqlTweetRepository
from app.logging_config import get_logger
from app.services.scheduler import SchedulerEngine
from app.services.twitter_api import TwitterPoster, TwitterTokenProvider

logger = get_logger(__name__)

def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if crud.seed_default_topics(db):
            logger.info("Initialized default content topics")
    finally:
        db.close()

def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def build_scheduler_engine() -> SchedulerEngine:
    return SchedulerEngine(
        SqlTweetRepository(SessionLocal),
        TwitterTokenProvider(),
        TwitterPoster(),
        cron=settings.scheduler_cron,
        token_lifetime=timedelta(seconds=settings.token_lifetime_seconds),
        batch_limit=settings.scheduler_batch_limit,
    )

def get_scheduler(request: Request) -> SchedulerEngine:
    sched = getattr(request.app.state, "scheduler", None)
    if sched is None:
        sched = request.app.state.scheduler = build_scheduler_engine()
    return sched
