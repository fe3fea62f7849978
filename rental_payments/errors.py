"""
Domain exceptions raised by the property and Stripe account write/read paths.

Every exception carries the HTTP status the API layer answers with. The
handlers registered in ``rental_payments.main`` render them as
``{"statusCode", "message", "errorMessages"}`` so that domain errors and
translated duplicate-key errors share one response shape.
"""

from __future__ import annotations

from typing import Optional


class RentalPaymentsError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class NotFoundError(RentalPaymentsError):
    status_code = 404


class PropertyReferenceError(RentalPaymentsError):
    """
    An account write names a property that is missing or soft-deleted.

    Attributes:
        property_id: The first offending property id in the association list
    """

    status_code = 400

    def __init__(self, property_id: object) -> None:
        super().__init__(
            f"Invalid property ID {property_id} or property is deleted",
            path="property_ids",
        )
        self.property_id = property_id


class DefaultAccountConflictError(RentalPaymentsError):
    status_code = 409

    def __init__(self, message: str = "Another account is already set as default") -> None:
        super().__init__(message, path="is_default_account")


class DuplicateAccountError(RentalPaymentsError):
    status_code = 409


class PropertyAssignmentConflictError(RentalPaymentsError):
    """A link request names properties already owned by another account."""

    status_code = 409

    def __init__(self, property_ids: list[object]) -> None:
        joined = ", ".join(str(pid) for pid in property_ids)
        super().__init__(
            f"Some properties are already assigned to other accounts: {joined}",
            path="property_ids",
        )
        self.property_ids = property_ids


class StripeVerificationError(RentalPaymentsError):
    status_code = 400


class StripeApiError(RentalPaymentsError):
    status_code = 502


class DataAccessError(RentalPaymentsError):
    """Reading a registry failed. The database error is chained as __cause__."""

    status_code = 500


class InactiveAccountError(RentalPaymentsError):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message, path="account_id")
