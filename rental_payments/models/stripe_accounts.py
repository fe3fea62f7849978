"""SQLAlchemy models for Stripe payment accounts and their property links."""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.sql import func

from rental_payments.config import SCHEMA
from rental_payments.models.base import Base
from rental_payments.models.enums import AccountType, RecordStatus, WebhookStatus
from rental_payments.models.properties import JSONType


class StripeAccount(Base):
    """
    ORM model for a Stripe account that collects rent for properties.

    stripe_secret_key is write-only: no reader that serves an API response
    selects it. At most one non-deleted row may carry is_default_account;
    the partial unique index backs up the check done on the write path.
    """

    __tablename__ = "stripe_accounts"
    __table_args__ = (
        Index(
            "uq_stripe_accounts_single_default",
            "is_default_account",
            unique=True,
            postgresql_where=text("is_default_account AND record_status = 'ACTIVE'"),
            sqlite_where=text("is_default_account = 1 AND record_status = 'ACTIVE'"),
        ),
        {"schema": SCHEMA},
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    stripe_account_id = Column(String(255), nullable=True, unique=True)
    stripe_secret_key = Column(String(255), nullable=False, unique=True)
    account_type = Column(
        Enum(AccountType, name="account_type", native_enum=False, length=16),
        nullable=False,
        default=AccountType.STANDARD,
    )
    is_active = Column(Boolean, nullable=False, default=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_global_account = Column(Boolean, nullable=False, default=False)
    is_default_account = Column(Boolean, nullable=False, default=False)
    webhook_id = Column(String(255), nullable=True)
    webhook_url = Column(String(1024), nullable=True)
    webhook_status = Column(
        Enum(WebhookStatus, name="webhook_status", native_enum=False, length=16),
        nullable=False,
        default=WebhookStatus.INACTIVE,
    )
    webhook_created_at = Column(DateTime(timezone=True), nullable=True)
    metadata_ = Column("metadata", JSONType, nullable=True)
    record_status = Column(
        Enum(RecordStatus, name="record_status", native_enum=False, length=16),
        nullable=False,
        default=RecordStatus.ACTIVE,
        index=True,
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class StripeAccountProperty(Base):
    """
    Ordered association list of a Stripe account.

    The account owns these rows; properties are referenced by id only and are
    never cascaded. position keeps the order in which properties were linked.
    """

    __tablename__ = "stripe_account_properties"
    __table_args__ = {"schema": SCHEMA}

    account_id = Column(
        Uuid,
        ForeignKey(f"{SCHEMA}.stripe_accounts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    property_id = Column(
        Uuid,
        ForeignKey(f"{SCHEMA}.properties.id"),
        primary_key=True,
        index=True,
    )
    position = Column(Integer, nullable=False, default=0)
