"""
Translation of storage-layer uniqueness violations into user-facing errors.

translate_duplicate_key_error() is a pure mapping from a ConflictSignal to an
ErrorResponse. conflict_signal_from_integrity_error() builds the signal from
a SQLAlchemy IntegrityError raised by PostgreSQL (psycopg2 diagnostics) or
SQLite (constraint message plus the statement parameters).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError

from rental_payments.schemas.errors import ErrorMessage, ErrorResponse

# PostgreSQL SQLSTATE unique_violation
DUPLICATE_KEY_CODE = "23505"

_PG_DETAIL_RE = re.compile(r"Key \((?P<fields>[^)]*)\)=\((?P<values>.*)\) already exists")
_SQLITE_COLUMN_RE = re.compile(r"UNIQUE constraint failed: (?P<columns>[\w.]+(?:, [\w.]+)*)")
_SQLITE_INDEX_RE = re.compile(r"UNIQUE constraint failed: index '(?P<index>\w+)'")

# Partial unique indexes reported by name instead of column
_INDEX_FIELDS = {"uq_stripe_accounts_single_default": "is_default_account"}


@dataclass(frozen=True)
class ConflictSignal:
    """
    Raw conflict information from the storage layer.

    Attributes:
        code: Storage error code (DUPLICATE_KEY_CODE for uniqueness violations)
        field: Name of the conflicting field, if known
        value: Conflicting value, if known
    """

    code: Optional[str]
    field: Optional[str] = None
    value: Any = None


def to_camel(name: str) -> str:
    """Column names are snake_case; error paths use the API's camelCase field names."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def translate_duplicate_key_error(signal: ConflictSignal) -> ErrorResponse:
    """
    Map a conflict signal to a 409 with a field-specific message, or a plain 500.

    Args:
        signal: Conflict signal from the storage layer

    Returns:
        ErrorResponse: statusCode, message and errorMessages
    """
    if signal.code != DUPLICATE_KEY_CODE or not signal.field:
        return ErrorResponse(status_code=500, message="Internal Server Error", error_messages=[])

    field = to_camel(signal.field)
    value = signal.value

    if field == "name":
        message = "Property Name Already Exists"
        detail = (
            f"A property with the name '{value}' already exists. "
            "Please choose a different name."
        )
    elif field == "propertyName":
        message = "Property Name Already Exists"
        detail = "A property with this name already exists. Please choose a different name."
    elif field == "email":
        message = "Email Already Exists"
        detail = (
            f"A user with the email '{value}' already exists. "
            "Please use a different email address."
        )
    elif field == "phoneNumber":
        message = "Phone Number Already Exists"
        detail = (
            f"A user with the phone number '{value}' already exists. "
            "Please use a different phone number."
        )
    else:
        message = "Duplicate Key Error"
        detail = f"Duplicate key error: '{field}' with value '{value}'"

    return ErrorResponse(
        status_code=409,
        message=message,
        error_messages=[ErrorMessage(path=field, message=detail)],
    )


def _statement_param(params: Any, column: str) -> Any:
    if isinstance(params, dict):
        return params.get(column)
    if isinstance(params, (list, tuple)) and params and isinstance(params[0], dict):
        return params[0].get(column)
    return None


def conflict_signal_from_integrity_error(exc: IntegrityError) -> ConflictSignal:
    """
    Extract code, field and value from a driver-level IntegrityError.

    Only the first field of a composite key is reported.

    Args:
        exc: IntegrityError raised by SQLAlchemy

    Returns:
        ConflictSignal: code is None when the error is not a uniqueness violation
    """
    orig = exc.orig
    pgcode = getattr(orig, "pgcode", None)

    if pgcode is not None:
        if pgcode != DUPLICATE_KEY_CODE:
            return ConflictSignal(code=pgcode)
        diag = getattr(orig, "diag", None)
        detail = getattr(diag, "message_detail", None) or str(orig)
        match = _PG_DETAIL_RE.search(detail)
        if not match:
            return ConflictSignal(code=pgcode)
        field = match.group("fields").split(",")[0].strip()
        value = match.group("values").split(", ")[0]
        return ConflictSignal(code=pgcode, field=field, value=value)

    message = str(orig)
    index_match = _SQLITE_INDEX_RE.search(message)
    if index_match:
        field = _INDEX_FIELDS.get(index_match.group("index"), index_match.group("index"))
        return ConflictSignal(code=DUPLICATE_KEY_CODE, field=field, value=True)

    column_match = _SQLITE_COLUMN_RE.search(message)
    if column_match:
        first = column_match.group("columns").split(", ")[0]
        field = first.split(".")[-1]
        return ConflictSignal(
            code=DUPLICATE_KEY_CODE, field=field, value=_statement_param(exc.params, field)
        )

    return ConflictSignal(code=None)
