from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from rental_payments.models.enums import AccountType, WebhookStatus
from rental_payments.schemas.properties import PropertyBrief, PropertyOut


class StripeAccountCreatePayload(BaseModel):
    """
    Schema for creating a Stripe account. The secret key is write-only.
    """

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    stripe_account_id: Optional[str] = Field(None, description="Required for CONNECT accounts")
    stripe_secret_key: str = Field(..., min_length=1, description="Stripe secret key (sk_...)")
    account_type: AccountType = AccountType.STANDARD
    is_global_account: bool = False
    is_default_account: bool = False
    property_ids: list[UUID] = Field(default_factory=list)
    metadata: Optional[dict[str, Any]] = None


class StripeAccountUpdatePayload(BaseModel):
    """
    Schema for updating a Stripe account. All fields are optional.
    property_ids, when given, replaces the whole association list.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    stripe_account_id: Optional[str] = None
    stripe_secret_key: Optional[str] = Field(None, min_length=1)
    account_type: Optional[AccountType] = None
    is_active: Optional[bool] = None
    is_global_account: Optional[bool] = None
    is_default_account: Optional[bool] = None
    property_ids: Optional[list[UUID]] = None
    metadata: Optional[dict[str, Any]] = None


class PropertyIdsPayload(BaseModel):
    property_ids: list[UUID] = Field(..., min_length=1)


class SetDefaultPayload(BaseModel):
    account_id: UUID


class StripeAccountSummary(BaseModel):
    """Account fields shown alongside a property. Never includes the secret key."""

    id: UUID
    name: str
    description: Optional[str] = None
    stripe_account_id: Optional[str] = None
    is_active: bool
    is_verified: bool
    is_global_account: bool
    is_default_account: bool


class StripeAccountOut(StripeAccountSummary):
    account_type: AccountType
    webhook_id: Optional[str] = None
    webhook_url: Optional[str] = None
    webhook_status: WebhookStatus
    webhook_created_at: Optional[datetime] = None
    metadata: Optional[dict[str, Any]] = None
    property_ids: list[UUID] = Field(default_factory=list)
    properties: list[PropertyBrief] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class PropertyWithStripeAccount(PropertyOut):
    stripe_account: Optional[StripeAccountSummary] = None
    has_stripe_account: bool


class AvailableStripeAccounts(BaseModel):
    property_specific: Optional[StripeAccountSummary] = None
    global_accounts: list[StripeAccountSummary]
    has_property_specific: bool
    has_global_accounts: bool
    total_available_accounts: int


class PropertyWithAvailableAccounts(PropertyOut):
    stripe_account: Optional[StripeAccountSummary] = None
    available_stripe_accounts: AvailableStripeAccounts


class DefaultAccountOverview(BaseModel):
    id: UUID
    name: str
    stripe_account_id: Optional[str] = None
    is_default_account: bool
    properties: list[PropertyBrief]


class AccountsSummary(BaseModel):
    total_stripe_accounts: int
    total_properties: int
    assigned_properties: int
    unassigned_properties: int
    has_default_account: bool
    default_account_properties_count: int


class StripeAccountsOverview(BaseModel):
    stripe_accounts: list[StripeAccountOut]
    unassigned_properties: list[PropertyBrief]
    default_account: Optional[DefaultAccountOverview] = None
    summary: AccountsSummary


class AccountStatistics(BaseModel):
    total_accounts: int
    active_accounts: int
    verified_accounts: int
    default_accounts: int
    standard_accounts: int
    connect_accounts: int


class AvailableAccountsForProperty(BaseModel):
    property_accounts: list[StripeAccountOut]
    global_accounts: list[StripeAccountOut]
    default_account: Optional[StripeAccountOut] = None
    has_property_accounts: bool
    has_global_accounts: bool
    has_default_account: bool
