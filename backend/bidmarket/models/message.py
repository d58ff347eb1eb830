"""Inbox message database model."""

from datetime import datetime
import uuid

from sqlalchemy import String, ForeignKey, TIMESTAMP
from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bidmarket.core.clock import utcnow
from bidmarket.database import Base


class Message(Base):
    """Notification delivered to an account's inbox after a lifecycle event."""

    __tablename__ = "messages"

    # Primary Key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Foreign Keys
    from_account_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False
    )
    to_account_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    bid_request_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("bid_requests.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )
    bid_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("bids.id", ondelete="CASCADE"),
        nullable=True
    )

    # Message Details
    message_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False
    )  # bid_received|bid_withdrawn|bid_accepted|bid_rejected|bid_request_cancelled
    content: Mapped[dict] = mapped_column(
        JSON,
        nullable=False
    )

    # Read Status
    read_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP,
        nullable=True,
        index=True
    )

    # Timestamp
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=utcnow
    )

    # Relationships
    from_account: Mapped["Account"] = relationship(
        "Account",
        foreign_keys=[from_account_id]
    )
    to_account: Mapped["Account"] = relationship(
        "Account",
        foreign_keys=[to_account_id]
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, type={self.message_type}, to={self.to_account_id})>"
