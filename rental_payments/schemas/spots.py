from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from rental_payments.models.enums import SpotStatus


class SpotSize(BaseModel):
    length: float = Field(..., ge=1)
    width: float = Field(..., ge=1)


class SpotPrice(BaseModel):
    daily: float = Field(..., ge=0)
    weekly: float = Field(..., ge=0)
    monthly: float = Field(..., ge=0)


class SpotCreatePayload(BaseModel):
    spot_number: str = Field(..., min_length=1, max_length=64)
    status: SpotStatus = SpotStatus.AVAILABLE
    size: SpotSize
    price: SpotPrice
    description: str = Field(..., min_length=1)
    images: list[str] = Field(default_factory=list)


class SpotUpdatePayload(BaseModel):
    """All fields optional; size and price replace the stored values when given."""

    spot_number: Optional[str] = Field(None, min_length=1, max_length=64)
    status: Optional[SpotStatus] = None
    size: Optional[SpotSize] = None
    price: Optional[SpotPrice] = None
    description: Optional[str] = None
    images: Optional[list[str]] = None
    is_active: Optional[bool] = None


class SpotOut(BaseModel):
    id: UUID
    property_id: UUID
    spot_number: str
    status: SpotStatus
    size: SpotSize
    price: SpotPrice
    description: Optional[str] = None
    images: list[str] = Field(default_factory=list)
    is_active: bool
    created_at: datetime
    updated_at: datetime
