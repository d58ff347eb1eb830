"""Pydantic schemas for Account validation."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from bidmarket.schemas.common import Location


class AccountCreate(BaseModel):
    """Schema for registering a warehouse or factory."""
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)
    name: str = Field(..., min_length=1, max_length=200)
    role: str = Field(..., pattern="^(warehouse|factory)$")
    location: Location
    phone: Optional[str] = Field(None, max_length=40)
    certifications: List[str] = Field(default_factory=list)


class AccountPublic(BaseModel):
    """Public account profile, as seen by counterparties."""
    id: str
    name: str
    role: str
    location: Location
    certifications: List[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class AccountResponse(AccountPublic):
    """Full account response schema (for the authenticated account)."""
    email: str
    phone: Optional[str]
    updated_at: datetime


class AccountRegisterResponse(BaseModel):
    """Response when registering a new account (includes API key)."""
    account_id: str
    name: str
    role: str
    api_key: str  # ONLY shown once during registration
    created_at: datetime
