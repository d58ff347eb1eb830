"""Activity log database model."""

from datetime import datetime

from sqlalchemy import String, Integer, TIMESTAMP, Index
from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column

from bidmarket.core.clock import utcnow
from bidmarket.database import Base


class ActivityLog(Base):
    """Append-only audit trail of auction lifecycle events."""

    __tablename__ = "activity_log"

    # Primary Key
    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True
    )

    # Event Details
    event_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False
    )

    # References are plain columns so audit rows outlive what they describe
    account_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    bid_request_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    bid_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    # Event Data
    data: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict
    )

    # Timestamp
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=utcnow
    )

    __table_args__ = (
        Index('idx_activity_created', 'created_at'),
        Index('idx_activity_type', 'event_type'),
    )

    def __repr__(self) -> str:
        return f"<ActivityLog(id={self.id}, type={self.event_type}, created_at={self.created_at})>"
