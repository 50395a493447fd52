"""Background posting of approved, due tweets.

One cycle asks the repository for due tweets and, for each one, makes sure the
owning account has a usable access token (refreshing it when it has expired),
posts the text and records ``posted`` or ``failed``. A failed tweet is never
retried by the engine; the user has to re-approve it.
"""

import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Protocol

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from app.db.base import utcnow
from app.db.models import ApprovalStatus, TweetStatus
from app.errors import AuthRefreshError, DataIntegrityError, NotFoundError, PostError
from app.logging_config import get_logger

logger = get_logger(__name__)


class TweetRepository(Protocol):
    def get_scheduled_due_tweets(self, now: datetime, limit: Optional[int] = None) -> List[Any]: ...
    def get_tweet_by_id(self, tweet_id: int) -> Optional[Any]: ...
    def update_tweet(self, tweet_id: int, **fields: Any) -> Optional[Any]: ...
    def get_account_by_id(self, account_id: int) -> Optional[Any]: ...
    def update_account(self, account_id: int, **fields: Any) -> Optional[Any]: ...


class TokenProvider(Protocol):
    def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]: ...


class SocialPoster(Protocol):
    def post(self, access_token: str, text: str) -> Optional[str]: ...


def is_token_stale(account: Any, now: datetime) -> bool:
    return account.token_expires_at is not None and account.token_expires_at <= now


class SchedulerEngine:
    JOB_ID = "process_due_tweets"

    def __init__(
        self,
        repository: TweetRepository,
        token_provider: TokenProvider,
        poster: SocialPoster,
        *,
        cron: str = "* * * * *",
        token_lifetime: timedelta = timedelta(hours=2),
        batch_limit: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.token_provider = token_provider
        self.poster = poster
        self.cron = cron
        self.token_lifetime = token_lifetime
        self.batch_limit = batch_limit or None
        self.clock = clock
        self._scheduler: Optional[BackgroundScheduler] = None
        self._lifecycle_lock = threading.Lock()
        self._cycle_lock = threading.Lock()

    # --- lifecycle ---

    @property
    def running(self) -> bool:
        return bool(self._scheduler and self._scheduler.running)

    def start(self) -> bool:
        """Start the recurring poll. Returns False if it was already running."""
        with self._lifecycle_lock:
            if self.running:
                return False
            scheduler = BackgroundScheduler(timezone="UTC")
            trigger = CronTrigger.from_crontab(self.cron, timezone="UTC")
            scheduler.add_job(self._tick, trigger, id=self.JOB_ID, replace_existing=True, max_instances=1, coalesce=True)
            scheduler.start()
            self._scheduler = scheduler
        logger.info("Tweet scheduler started (cron=%r)", self.cron)
        return True

    def stop(self) -> bool:
        """Stop scheduling new cycles; a cycle already in flight runs to completion."""
        with self._lifecycle_lock:
            if not self.running:
                return False
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
        logger.info("Tweet scheduler stopped")
        return True

    def _tick(self) -> None:
        try:
            self.process_due_tweets()
        except Exception:
            # repository trouble; the next tick tries again
            logger.exception("Error processing scheduled tweets")

    # --- work ---

    def process_due_tweets(self) -> Dict[str, Any]:
        if not self._cycle_lock.acquire(blocking=False):
            logger.info("Previous cycle still running; skipping")
            return {"status": "busy"}
        try:
            tweets = self.repository.get_scheduled_due_tweets(self.clock(), limit=self.batch_limit)
            posted = failed = 0
            for tweet in tweets:
                if self._process_tweet(tweet):
                    posted += 1
                else:
                    failed += 1
            if tweets:
                logger.info("Cycle done: %d due, %d posted, %d failed", len(tweets), posted, failed)
            return {"status": "ok", "processed": len(tweets), "posted": posted, "failed": failed}
        finally:
            self._cycle_lock.release()

    def _process_tweet(self, tweet: Any) -> bool:
        try:
            twitter_tweet_id = self._attempt(tweet)
        except DataIntegrityError as e:
            logger.error("Tweet %s cannot be posted: %s", tweet.id, e)
        except (AuthRefreshError, PostError) as e:
            logger.warning("Failed to post scheduled tweet %s: %s", tweet.id, e)
        else:
            self.repository.update_tweet(
                tweet.id,
                status=TweetStatus.POSTED.value,
                posted_at=self.clock(),
                twitter_tweet_id=twitter_tweet_id,
            )
            logger.info("Successfully posted tweet %s as %s", tweet.id, twitter_tweet_id)
            return True
        self.repository.update_tweet(tweet.id, status=TweetStatus.FAILED.value)
        return False

    def _attempt(self, tweet: Any) -> str:
        account = self.repository.get_account_by_id(tweet.twitter_account_id)
        if account is None:
            raise DataIntegrityError(f"Twitter account {tweet.twitter_account_id} not found")

        access_token = self._usable_access_token(account)
        try:
            twitter_tweet_id = self.poster.post(access_token, tweet.content)
        except PostError:
            raise
        except Exception as e:
            raise PostError(str(e)) from e
        if not twitter_tweet_id:
            raise PostError("Failed to get tweet ID from Twitter API")
        return str(twitter_tweet_id)

    def _read_token(self, account: Any, attr: str) -> Optional[str]:
        # stored tokens are decrypted on read; an unreadable one is this account's problem only
        try:
            return getattr(account, attr)
        except Exception as e:
            raise DataIntegrityError(f"Stored {attr} for account {account.id} is unreadable: {e!r}") from e

    def _usable_access_token(self, account: Any) -> str:
        if not is_token_stale(account, self.clock()):
            return self._read_token(account, "access_token")
        refresh_token = self._read_token(account, "refresh_token")
        if not refresh_token:
            raise AuthRefreshError(f"Token for account {account.id} expired and no refresh token is available")

        try:
            tokens = self.token_provider.refresh_access_token(refresh_token)
        except AuthRefreshError:
            raise
        except Exception as e:
            raise AuthRefreshError(str(e)) from e
        access_token = (tokens or {}).get("access_token")
        if not access_token:
            raise AuthRefreshError(f"Refresh for account {account.id} returned no access token")

        self.repository.update_account(
            account.id,
            access_token=access_token,
            refresh_token=tokens.get("refresh_token") or refresh_token,
            token_expires_at=self.clock() + self.token_lifetime,
        )
        logger.info("Refreshed access token for account %s", account.id)
        return access_token

    def schedule_immediate_post(self, tweet_id: int) -> Any:
        """Make a tweet due now; the next cycle picks it up."""
        tweet = self.repository.get_tweet_by_id(tweet_id)
        if tweet is None:
            raise NotFoundError(f"Tweet {tweet_id} not found")
        return self.repository.update_tweet(
            tweet_id,
            scheduled_for=self.clock(),
            status=TweetStatus.SCHEDULED.value,
            approval_status=ApprovalStatus.APPROVED.value,
        )
