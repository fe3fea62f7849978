"""UTC datetime utilities."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    Writers stamp created_at / updated_at / deleted_at with this value so
    that ordering by creation time does not depend on database clock
    resolution.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)
