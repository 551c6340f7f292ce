"""
SQLAlchemy ORM models (web push subscriptions + schema version stamp)
"""
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from pushstore.infrastructure.db.session import Base


class SubscriptionModel(Base):
    """
    One row per (topic, endpoint) membership.

    An endpoint's full topic set is the union of its rows; rows are never
    updated in place except for the warning_sent flag.
    """
    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    endpoint: Mapped[str] = mapped_column(Text, nullable=False)
    key_auth: Mapped[str] = mapped_column(Text, nullable=False)
    key_p256dh: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.current_timestamp()
    )
    warning_sent: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("0")
    )

    __table_args__ = (
        Index("idx_topic", "topic"),
        Index("idx_endpoint", "endpoint"),
        Index("idx_topic_endpoint", "topic", "endpoint", unique=True),
    )


class SchemaVersion(Base):
    """Single stamped row (id=1) holding the storage layout revision."""
    __tablename__ = "schemaVersion"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
