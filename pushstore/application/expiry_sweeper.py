"""
Expiry sweeper - lifecycle transitions of aging subscriptions.

Row states:
  - ACTIVE:  warning_sent = False
  - WARNED:  warning_sent = True
  - EXPIRED: row deleted

One sweep, one transaction, strictly in this order:
  1. expire: delete WARNED rows older than expiry_duration
  2. select: read ACTIVE rows older than warning_duration (returned to the caller)
  3. mark:   flag the same ACTIVE rows as WARNED

Expiry only ever targets rows that were already WARNED, so a row is never
both deleted and returned by the same sweep, and a WARNED row is never
returned again. Age is measured from updated_at, which only an upsert refreshes.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import sessionmaker

from pushstore.domain.subscription import Subscription
from pushstore.infrastructure.db.models import SubscriptionModel
from pushstore.infrastructure.db.repository import SUBSCRIPTION_COLUMNS, rows_to_subscriptions

logger = logging.getLogger(__name__)


class ExpirySweeper:
    def __init__(self, session_factory: sessionmaker, clock: Callable[[], datetime]):
        self.session_factory = session_factory
        self.clock = clock

    def expire_and_get_expiring_subscriptions(
        self,
        warning_duration: timedelta,
        expiry_duration: timedelta,
        now: Optional[datetime] = None,
    ) -> List[Subscription]:
        """
        Delete expired subscriptions and return the ones that need a "closing soon" notice.

        Args:
            warning_duration: age at which an ACTIVE row becomes WARNED
            expiry_duration: age at which a WARNED row is deleted (must exceed warning_duration)
            now: reference time (default: store clock)

        Returns:
            Subscriptions that crossed the warning threshold in this sweep,
            one entry per distinct endpoint/keys/user.
        """
        if warning_duration >= expiry_duration:
            logger.warning(
                "Warning duration %s is not shorter than expiry duration %s; "
                "rows may expire without a warning ever being reported",
                warning_duration, expiry_duration,
            )
        if now is None:
            now = self.clock()
        expiry_cutoff = now - expiry_duration
        warning_cutoff = now - warning_duration

        warnable = (
            SubscriptionModel.warning_sent == False,
            SubscriptionModel.updated_at <= warning_cutoff,
        )

        with self.session_factory.begin() as db:
            expired = db.execute(
                delete(SubscriptionModel)
                .where(
                    SubscriptionModel.warning_sent == True,
                    SubscriptionModel.updated_at <= expiry_cutoff,
                )
                .execution_options(synchronize_session=False)
            ).rowcount

            rows = db.execute(
                select(*SUBSCRIPTION_COLUMNS).where(*warnable).distinct()
            ).all()

            warned = db.execute(
                update(SubscriptionModel)
                .where(*warnable)
                .values(warning_sent=True)
                .execution_options(synchronize_session=False)
            ).rowcount

        logger.info(
            "Web push sweep: %d subscription(s) expired, %d row(s) warned (%d endpoint(s) to notify)",
            expired, warned, len(rows),
        )
        return rows_to_subscriptions(rows)
