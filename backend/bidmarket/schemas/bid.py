"""Pydantic schemas for Bid validation."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from bidmarket.schemas.account import AccountPublic
from bidmarket.schemas.bid_request import BidRequestBrief
from bidmarket.schemas.common import UTCDatetime


class PriceBreakdown(BaseModel):
    material_cost: Optional[Decimal] = Field(None, ge=0)
    labor_cost: Optional[Decimal] = Field(None, ge=0)
    overhead_cost: Optional[Decimal] = Field(None, ge=0)
    margin: Optional[Decimal] = None


class Pricing(BaseModel):
    """Commercial terms. total_price is taken as quoted by the factory."""
    unit_price: Decimal = Field(..., gt=0)
    total_price: Decimal = Field(..., gt=0)
    discount_offered: Decimal = Field(Decimal("0"), ge=0)
    payment_terms: str = Field(..., min_length=1, max_length=100)
    price_breakdown: Optional[PriceBreakdown] = None


class Delivery(BaseModel):
    estimated_delivery_date: UTCDatetime
    delivery_method: str = Field(..., min_length=1, max_length=100)
    shipping_cost: Decimal = Field(..., ge=0)
    production_time_days: int = Field(..., ge=0)


class Proposal(BaseModel):
    message: str = Field(..., min_length=1)
    value_proposition: str = Field(..., min_length=1)
    risk_mitigation: Optional[str] = None
    alternative_specs: Optional[str] = None


class QualityAssurance(BaseModel):
    certifications: List[str] = Field(default_factory=list)
    quality_guarantee: str = Field(..., min_length=1)
    warranty_coverage: Optional[str] = None
    sample_available: bool = False


class FactoryCapacity(BaseModel):
    current_capacity: int = Field(..., ge=0)
    max_capacity: int = Field(..., ge=0)
    experience_years: int = Field(..., ge=0)
    similar_projects_completed: int = Field(0, ge=0)


class BidCreate(BaseModel):
    """Schema for submitting a bid against a bid request."""
    pricing: Pricing
    delivery: Delivery
    proposal: Proposal
    competitive_advantages: List[str] = Field(default_factory=list)
    quality_assurance: Optional[QualityAssurance] = None
    factory_capacity: Optional[FactoryCapacity] = None
    valid_until: Optional[UTCDatetime] = Field(
        None,
        description="Defaults to 30 days from now; terms are not binding afterwards"
    )


class BidResponse(BaseModel):
    """Full bid response schema."""
    id: str
    bid_request_id: str
    factory_id: str
    pricing: Pricing
    delivery: Delivery
    proposal: Proposal
    competitive_advantages: List[str]
    quality_assurance: Optional[QualityAssurance]
    factory_capacity: Optional[FactoryCapacity]

    status: str
    valid_until: datetime
    submitted_at: datetime
    updated_at: datetime
    decided_at: Optional[datetime]
    withdrawn_at: Optional[datetime]

    model_config = {"from_attributes": True}


class RankedBidResponse(BidResponse):
    """A bid as the warehouse sees it, with the bidding factory's profile."""
    factory: AccountPublic


class FactoryBidResponse(BidResponse):
    """A factory's own bid together with the request it was placed on."""
    bid_request: BidRequestBrief


class BidAcceptResponse(BaseModel):
    """Settlement outcome returned to the warehouse."""
    message: str
    bid: BidResponse
    bid_request_id: str
    bid_request_status: str
    rejected_bid_ids: List[str]
