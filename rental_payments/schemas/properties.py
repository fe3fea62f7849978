from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class Address(BaseModel):
    street: str
    city: str
    state: str
    zip: str
    country: str = "USA"


class AddressUpdate(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None


class PropertyCreatePayload(BaseModel):
    """
    Schema for creating a property.
    """

    name: str = Field(..., min_length=1, max_length=255, description="Unique property name")
    description: str = Field(..., min_length=1)
    address: Address
    amenities: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    rules: list[str] = Field(default_factory=list)


class PropertyUpdatePayload(BaseModel):
    """
    Schema for updating a property. All fields are optional; address fields are merged.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    address: Optional[AddressUpdate] = None
    amenities: Optional[list[str]] = None
    images: Optional[list[str]] = None
    rules: Optional[list[str]] = None
    is_active: Optional[bool] = None


class PropertyOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    address: Optional[dict] = None
    amenities: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    rules: list[str] = Field(default_factory=list)
    is_active: bool
    created_at: datetime
    updated_at: datetime
    total_spots: int = 0
    available_spots: int = 0
    maintenance_spots: int = 0


class PropertyBrief(BaseModel):
    id: UUID
    name: str
    address: Optional[dict] = None
