"""Pydantic schemas for bid request (RFQ) validation."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from bidmarket.schemas.account import AccountPublic
from bidmarket.schemas.common import Location, UTCDatetime


class Specifications(BaseModel):
    """What the warehouse wants produced and where it goes."""
    description: str = Field(..., min_length=1)
    custom_requirements: Optional[str] = None
    quality_standards: Optional[str] = None
    packaging_requirements: Optional[str] = None
    delivery_location: Location


class Budget(BaseModel):
    """Budget range. min <= preferred <= max is recommended, not enforced."""
    min_price: Decimal = Field(..., ge=0)
    max_price: Decimal = Field(..., ge=0)
    preferred_price: Decimal = Field(..., ge=0)


class Timeline(BaseModel):
    requested_delivery_date: Optional[UTCDatetime] = None
    urgency: str = Field("medium", pattern="^(low|medium|high|urgent)$")


class BidRequirements(BaseModel):
    """Eligibility hints for factories. Matching them is the caller's job."""
    minimum_factory_rating: Optional[float] = Field(None, ge=1, le=5)
    preferred_max_distance: Optional[float] = Field(None, ge=0)
    requires_certifications: List[str] = Field(default_factory=list)
    payment_terms: Optional[str] = Field(None, max_length=100)


class BidRequestCreate(BaseModel):
    """Schema for posting a new bid request."""
    product_name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(..., ge=1)
    specifications: Specifications
    budget: Budget
    timeline: Timeline = Field(default_factory=Timeline)
    bid_requirements: BidRequirements = Field(default_factory=BidRequirements)
    bidding_deadline: Optional[UTCDatetime] = Field(
        None,
        description="Defaults to 7 days from now; must be in the future"
    )
    notes: Optional[str] = None


class BidRequestResponse(BaseModel):
    """Full bid request response schema."""
    id: str
    warehouse_id: str
    warehouse: Optional[AccountPublic] = None
    product_name: str
    category: str
    quantity: int
    specifications: Specifications
    budget: Budget
    timeline: Timeline
    bid_requirements: BidRequirements
    notes: Optional[str]

    status: str
    effective_status: Optional[str] = None  # "closed" once an open request's deadline passes
    bidding_deadline: datetime
    awarded_bid_id: Optional[str]

    created_at: datetime
    updated_at: datetime
    awarded_at: Optional[datetime]
    cancelled_at: Optional[datetime]

    bid_count: Optional[int] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_model(cls, bid_request, now: datetime, bid_count: Optional[int] = None) -> "BidRequestResponse":
        response = cls.model_validate(bid_request)
        response.effective_status = bid_request.status_at(now)
        response.bid_count = bid_count
        return response


class BidRequestBrief(BaseModel):
    """Parent request summary embedded in a factory's bid listing."""
    id: str
    warehouse_id: str
    product_name: str
    category: str
    quantity: int
    status: str
    bidding_deadline: datetime

    model_config = {"from_attributes": True}


class BidRequestList(BaseModel):
    """Open bid requests with pagination."""
    bid_requests: List[BidRequestResponse]
    total: int
    limit: int
    offset: int
