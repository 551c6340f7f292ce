"""
Subscription repository - CRUD on individual subscription rows.

Each public method runs in its own transaction.
"""
import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from pushstore.domain.subscription import Subscription
from pushstore.infrastructure.db.models import SubscriptionModel

logger = logging.getLogger(__name__)


class SubscriptionValidationError(ValueError):
    pass


def rows_to_subscriptions(rows) -> List[Subscription]:
    """(endpoint, key_auth, key_p256dh, user_id) rows -> detached Subscription values"""
    return [
        Subscription(endpoint=endpoint, auth=auth, p256dh=p256dh, user_id=user_id)
        for endpoint, auth, p256dh, user_id in rows
    ]


SUBSCRIPTION_COLUMNS = (
    SubscriptionModel.endpoint,
    SubscriptionModel.key_auth,
    SubscriptionModel.key_p256dh,
    SubscriptionModel.user_id,
)


class SubscriptionRepository:
    """
    Repository for web push subscription rows

    Args:
        session_factory: sessionmaker bound to the store's engine
        clock: returns naive UTC now, stamped into updated_at
    """

    def __init__(self, session_factory: sessionmaker, clock: Callable[[], datetime]):
        self.session_factory = session_factory
        self.clock = clock

    def upsert_subscription(
        self,
        endpoint: str,
        topics: Iterable[str],
        user_id: Optional[str],
        auth: str,
        p256dh: str,
    ) -> None:
        """
        Replace the endpoint's topic set with exactly `topics`.

        All existing rows for the endpoint are deleted, then one fresh row
        (warning_sent=False, updated_at=now) is inserted per topic. An empty
        `topics` unsubscribes the endpoint from everything. On any failure the
        transaction rolls back and the previous rows stay untouched.

        Raises:
            SubscriptionValidationError: endpoint is empty
        """
        if not endpoint:
            raise SubscriptionValidationError("endpoint must not be empty")

        unique_topics = list(dict.fromkeys(topics))
        now = self.clock()

        with self.session_factory.begin() as db:
            _delete_by_endpoint(db, endpoint)
            db.add_all(
                SubscriptionModel(
                    topic=topic,
                    user_id=user_id,
                    endpoint=endpoint,
                    key_auth=auth,
                    key_p256dh=p256dh,
                    updated_at=now,
                    warning_sent=False,
                )
                for topic in unique_topics
            )
        logger.debug("Upserted subscription %s with %d topic(s)", endpoint[:60], len(unique_topics))

    def subscriptions_for_topic(self, topic: str) -> List[Subscription]:
        """All subscribers of `topic`, in no particular order (empty list if none)."""
        with self.session_factory.begin() as db:
            rows = db.execute(
                select(*SUBSCRIPTION_COLUMNS).where(SubscriptionModel.topic == topic)
            ).all()
        return rows_to_subscriptions(rows)

    def remove_subscriptions_by_endpoint(self, endpoint: str) -> int:
        """Delete every row for `endpoint`; returns the number of deleted rows."""
        with self.session_factory.begin() as db:
            deleted = _delete_by_endpoint(db, endpoint)
        logger.debug("Removed %d subscription(s) for endpoint %s", deleted, endpoint[:60])
        return deleted

    def remove_subscriptions_by_user_id(self, user_id: str) -> int:
        """Delete every row owned by `user_id`; returns the number of deleted rows."""
        with self.session_factory.begin() as db:
            deleted = db.execute(
                delete(SubscriptionModel).where(SubscriptionModel.user_id == user_id)
                .execution_options(synchronize_session=False)
            ).rowcount
        logger.debug("Removed %d subscription(s) for user %s", deleted, user_id)
        return deleted


def _delete_by_endpoint(db: Session, endpoint: str) -> int:
    return db.execute(
        delete(SubscriptionModel).where(SubscriptionModel.endpoint == endpoint)
        .execution_options(synchronize_session=False)
    ).rowcount
