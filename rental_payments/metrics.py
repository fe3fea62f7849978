"""
Prometheus metrics for assignment resolution, account writes, and Stripe API calls.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Example:
    >>> from rental_payments.metrics import resolver_duration
    >>> with resolver_duration.labels(view="without_accounts").time():
    ...     rows = resolve_without_accounts(properties, accounts)
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Assignment Resolver Metrics
# =============================================================================

resolver_requests = Counter(
    "rental_resolver_requests_total",
    "Total number of property/account resolution requests",
    ["view", "status"],
)
"""
Counter for resolver calls.

Labels:
    view: all_with_accounts, available_accounts, or without_accounts
    status: success or failure
"""

resolver_duration = Histogram(
    "rental_resolver_duration_seconds",
    "Duration of property/account resolution including registry reads",
    ["view"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, float("inf")),
)

# =============================================================================
# Account Write Metrics
# =============================================================================

account_writes = Counter(
    "rental_stripe_account_writes_total",
    "Stripe account write operations",
    ["operation", "outcome"],
)
"""
Counter for Stripe account writes.

Labels:
    operation: create, update, link, unlink, set_default, delete, verify, webhook
    outcome: success or rejected
"""

validation_rejections = Counter(
    "rental_validation_rejections_total",
    "Account writes rejected by pre-save validation",
    ["reason"],
)
"""
Labels:
    reason: property_reference, default_conflict, duplicate, assignment_conflict
"""

# =============================================================================
# Stripe API Metrics
# =============================================================================

stripe_api_requests = Counter(
    "rental_stripe_api_requests_total",
    "Total Stripe API requests made",
    ["endpoint", "status_code"],
)

stripe_api_latency = Histogram(
    "rental_stripe_api_latency_seconds",
    "Stripe API request latency in seconds",
    ["endpoint"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float("inf")),
)
