"""Bid request (RFQ) database model."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List
import uuid

from sqlalchemy import String, Text, Integer, Float, Numeric, ForeignKey, TIMESTAMP, Index
from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bidmarket.core.clock import utcnow
from bidmarket.database import Base


class BidRequestStatus(str, Enum):
    """Stored lifecycle states of a bid request."""
    OPEN = "open"
    CLOSED = "closed"  # Derived at read time once the deadline passes; never written by the engine
    AWARDED = "awarded"
    CANCELLED = "cancelled"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class BidRequest(Base):
    """A warehouse's request for factories to bid on."""

    __tablename__ = "bid_requests"

    # Primary Key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Owner (immutable)
    warehouse_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Product
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    # Specification block
    description: Mapped[str] = mapped_column(Text, nullable=False)
    custom_requirements: Mapped[str | None] = mapped_column(Text, nullable=True)
    quality_standards: Mapped[str | None] = mapped_column(Text, nullable=True)
    packaging_requirements: Mapped[str | None] = mapped_column(Text, nullable=True)
    delivery_location: Mapped[dict] = mapped_column(
        JSON,
        nullable=False
    )  # address, city, state, latitude, longitude

    # Budget (ordering of min/preferred/max is not enforced)
    budget_min: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    budget_max: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    budget_preferred: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    # Timeline
    requested_delivery_date: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)
    urgency: Mapped[str] = mapped_column(String(10), nullable=False, default=Urgency.MEDIUM.value)

    # Eligibility constraints (stored for factories to read, not enforced)
    minimum_factory_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    preferred_max_distance: Mapped[float | None] = mapped_column(Float, nullable=True)
    required_certifications: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    payment_terms: Mapped[str | None] = mapped_column(String(100), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Status & State
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BidRequestStatus.OPEN.value
    )  # open|closed|awarded|cancelled
    bidding_deadline: Mapped[datetime] = mapped_column(TIMESTAMP, nullable=False)
    awarded_bid_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=utcnow,
        index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=utcnow,
        onupdate=utcnow
    )
    awarded_at: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)

    # Relationships
    warehouse: Mapped["Account"] = relationship(
        "Account",
        back_populates="bid_requests",
        lazy="selectin"
    )
    bids: Mapped[List["Bid"]] = relationship(
        "Bid",
        back_populates="bid_request",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        # Supports the open-listing query
        Index("ix_bid_requests_status_deadline", "status", "bidding_deadline"),
    )

    def status_at(self, now: datetime) -> str:
        """Stored status, with an expired open request reported as closed."""
        # Reports closed from the deadline instant on, while submissions are
        # still accepted at exactly the deadline and refused only after it.
        if self.status == BidRequestStatus.OPEN.value and self.bidding_deadline <= now:
            return BidRequestStatus.CLOSED.value
        return self.status

    @property
    def specifications(self) -> dict:
        return {
            "description": self.description,
            "custom_requirements": self.custom_requirements,
            "quality_standards": self.quality_standards,
            "packaging_requirements": self.packaging_requirements,
            "delivery_location": self.delivery_location,
        }

    @property
    def budget(self) -> dict:
        return {
            "min_price": self.budget_min,
            "max_price": self.budget_max,
            "preferred_price": self.budget_preferred,
        }

    @property
    def timeline(self) -> dict:
        return {
            "requested_delivery_date": self.requested_delivery_date,
            "urgency": self.urgency,
        }

    @property
    def bid_requirements(self) -> dict:
        return {
            "minimum_factory_rating": self.minimum_factory_rating,
            "preferred_max_distance": self.preferred_max_distance,
            "requires_certifications": self.required_certifications or [],
            "payment_terms": self.payment_terms,
        }

    def __repr__(self) -> str:
        return f"<BidRequest(id={self.id}, product={self.product_name}, status={self.status})>"

