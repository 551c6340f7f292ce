"""
Web push store - owns the database handle and exposes subscription persistence.

Usage:
    with WebPushStore("webpush.db") as store:
        store.upsert_subscription(endpoint, ["news", "sports"], "user-1", auth, p256dh)
        for sub in store.subscriptions_for_topic("news"):
            ...
        expiring = store.expire_and_get_expiring_subscriptions(
            timedelta(days=55), timedelta(days=60)
        )
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional

from pushstore.application.expiry_sweeper import ExpirySweeper
from pushstore.config import Settings, get_settings
from pushstore.domain.subscription import Subscription
from pushstore.infrastructure.db.repository import SubscriptionRepository
from pushstore.infrastructure.db.schema import setup_schema
from pushstore.infrastructure.db.session import create_sqlite_engine, get_session_factory

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Naive UTC now, the format updated_at is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class WebPushStore:
    """
    Persistent web push subscriptions for topics.

    Opening the store creates (or validates and migrates) the schema; a
    failure there is raised and no store is produced.

    Args:
        filename: path to the SQLite database file
        clock: returns naive UTC now (default: utcnow)
        busy_timeout: seconds to wait on a locked database
    """

    def __init__(
        self,
        filename: str,
        clock: Optional[Callable[[], datetime]] = None,
        busy_timeout: float = 5.0,
    ):
        self.clock = clock or utcnow
        self.engine = create_sqlite_engine(filename, busy_timeout=busy_timeout)
        try:
            self.schema_version = setup_schema(self.engine)
        except Exception:
            self.engine.dispose()
            raise

        session_factory = get_session_factory(self.engine)
        self.subscriptions = SubscriptionRepository(session_factory, self.clock)
        self.sweeper = ExpirySweeper(session_factory, self.clock)
        logger.debug("Opened web push store %s (schema version %d)", filename, self.schema_version)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        busy_timeout: Optional[float] = None,
    ) -> "WebPushStore":
        """Open the store at the configured database path; busy_timeout overrides the setting."""
        settings = settings or get_settings()
        if busy_timeout is None:
            busy_timeout = settings.WEBPUSH_BUSY_TIMEOUT
        return cls(settings.WEBPUSH_DATABASE_PATH, clock=clock, busy_timeout=busy_timeout)

    def upsert_subscription(
        self,
        endpoint: str,
        topics: Iterable[str],
        user_id: Optional[str],
        auth: str,
        p256dh: str,
    ) -> None:
        self.subscriptions.upsert_subscription(endpoint, topics, user_id, auth, p256dh)

    def subscriptions_for_topic(self, topic: str) -> List[Subscription]:
        return self.subscriptions.subscriptions_for_topic(topic)

    def remove_subscriptions_by_endpoint(self, endpoint: str) -> int:
        return self.subscriptions.remove_subscriptions_by_endpoint(endpoint)

    def remove_subscriptions_by_user_id(self, user_id: str) -> int:
        return self.subscriptions.remove_subscriptions_by_user_id(user_id)

    def expire_and_get_expiring_subscriptions(
        self,
        warning_duration: timedelta,
        expiry_duration: timedelta,
        now: Optional[datetime] = None,
    ) -> List[Subscription]:
        return self.sweeper.expire_and_get_expiring_subscriptions(
            warning_duration, expiry_duration, now=now
        )

    def sweep_with_settings(
        self,
        settings: Optional[Settings] = None,
        now: Optional[datetime] = None,
    ) -> List[Subscription]:
        """Sweep using the configured warning/expiry durations."""
        settings = settings or get_settings()
        return self.expire_and_get_expiring_subscriptions(
            settings.WEBPUSH_WARNING_DURATION,
            settings.WEBPUSH_EXPIRY_DURATION,
            now=now,
        )

    def close(self) -> None:
        self.engine.dispose()

    def __enter__(self) -> "WebPushStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
