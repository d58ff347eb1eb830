"""Account database model (warehouse and factory identities)."""

from datetime import datetime
from enum import Enum
from typing import List
import uuid

from sqlalchemy import String, Float, TIMESTAMP
from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bidmarket.core.clock import utcnow
from bidmarket.database import Base


class AccountRole(str, Enum):
    """Marketplace side an account trades on."""
    WAREHOUSE = "warehouse"  # Buyer: posts bid requests, accepts bids
    FACTORY = "factory"  # Seller: submits bids


class Account(Base):
    """Account model representing a warehouse or factory in the marketplace."""

    __tablename__ = "accounts"

    # Primary Key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Basic Info
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)  # warehouse|factory
    api_key_hash: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)

    # Location
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Factory profile
    certifications: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=utcnow,
        onupdate=utcnow
    )

    # Relationships
    bid_requests: Mapped[List["BidRequest"]] = relationship(
        "BidRequest",
        back_populates="warehouse"
    )
    bids: Mapped[List["Bid"]] = relationship(
        "Bid",
        back_populates="factory"
    )

    @property
    def location(self) -> dict:
        return {
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, name={self.name}, role={self.role})>"
