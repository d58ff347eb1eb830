"""Bid database model."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
import uuid

from sqlalchemy import String, Text, Integer, Numeric, ForeignKey, TIMESTAMP, Index, text
from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bidmarket.core.clock import utcnow
from bidmarket.database import Base


class BidStatus(str, Enum):
    """Bid lifecycle states. Every state except SUBMITTED is terminal."""
    SUBMITTED = "submitted"
    WITHDRAWN = "withdrawn"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COUNTER_OFFERED = "counter_offered"  # Recognised value; no transition leads here


class Bid(Base):
    """A factory's priced proposal against one bid request."""

    __tablename__ = "bids"

    # Primary Key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Foreign Keys (immutable)
    bid_request_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("bid_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    factory_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Pricing
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(
        Numeric(16, 2),
        nullable=False,
        index=True
    )  # As supplied by the factory, never recomputed
    discount_offered: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
        default=Decimal("0")
    )
    payment_terms: Mapped[str] = mapped_column(String(100), nullable=False)
    price_breakdown: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Delivery
    estimated_delivery_date: Mapped[datetime] = mapped_column(TIMESTAMP, nullable=False)
    delivery_method: Mapped[str] = mapped_column(String(100), nullable=False)
    shipping_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    production_time_days: Mapped[int] = mapped_column(Integer, nullable=False)

    # Proposal
    message: Mapped[str] = mapped_column(Text, nullable=False)
    value_proposition: Mapped[str] = mapped_column(Text, nullable=False)
    risk_mitigation: Mapped[str | None] = mapped_column(Text, nullable=True)
    alternative_specs: Mapped[str | None] = mapped_column(Text, nullable=True)
    competitive_advantages: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # Optional supporting detail
    quality_assurance: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    factory_capacity: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Status & State
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BidStatus.SUBMITTED.value,
        index=True
    )  # submitted|withdrawn|accepted|rejected|counter_offered
    valid_until: Mapped[datetime] = mapped_column(TIMESTAMP, nullable=False)

    # Timestamps
    submitted_at: Mapped[datetime] = mapped_column(
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
    decided_at: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)
    withdrawn_at: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)

    # Relationships
    bid_request: Mapped["BidRequest"] = relationship(
        "BidRequest",
        back_populates="bids"
    )
    factory: Mapped["Account"] = relationship(
        "Account",
        back_populates="bids"
    )

    __table_args__ = (
        # One non-withdrawn bid per factory per request; this index is the
        # source of truth, the service pre-check only produces a nicer error.
        Index(
            "uq_bids_request_factory_live",
            "bid_request_id",
            "factory_id",
            unique=True,
            postgresql_where=text("status <> 'withdrawn'"),
            sqlite_where=text("status <> 'withdrawn'"),
        ),
        Index("ix_bids_factory_status", "factory_id", "status"),
    )

    def is_expired(self, now: datetime) -> bool:
        return self.valid_until < now

    @property
    def pricing(self) -> dict:
        return {
            "unit_price": self.unit_price,
            "total_price": self.total_price,
            "discount_offered": self.discount_offered,
            "payment_terms": self.payment_terms,
            "price_breakdown": self.price_breakdown,
        }

    @property
    def delivery(self) -> dict:
        return {
            "estimated_delivery_date": self.estimated_delivery_date,
            "delivery_method": self.delivery_method,
            "shipping_cost": self.shipping_cost,
            "production_time_days": self.production_time_days,
        }

    @property
    def proposal(self) -> dict:
        return {
            "message": self.message,
            "value_proposition": self.value_proposition,
            "risk_mitigation": self.risk_mitigation,
            "alternative_specs": self.alternative_specs,
        }

    def __repr__(self) -> str:
        return f"<Bid(id={self.id}, bid_request_id={self.bid_request_id}, status={self.status})>"
