"""Closed value sets stored as strings on the rental tables."""

from enum import Enum


class RecordStatus(str, Enum):
    """Soft-delete state of a property or Stripe account."""

    ACTIVE = "ACTIVE"
    DELETED = "DELETED"


class AccountType(str, Enum):
    """STANDARD = the landlord's own Stripe account, CONNECT = platform connected account."""

    STANDARD = "STANDARD"
    CONNECT = "CONNECT"


class WebhookStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    FAILED = "FAILED"


class SpotStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    MAINTENANCE = "MAINTENANCE"
