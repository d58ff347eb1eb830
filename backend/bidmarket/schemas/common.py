"""Schema building blocks shared across resources."""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, Field

from bidmarket.core.clock import to_naive_utc


# Every timestamp is stored as naive UTC
UTCDatetime = Annotated[datetime, AfterValidator(to_naive_utc)]


class Location(BaseModel):
    """Postal location with optional coordinates."""
    address: str = Field(..., min_length=1, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
