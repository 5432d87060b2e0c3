"""
Prometheus metrics for the settlement pipeline and its outbound integrations.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Metric Types:
    - Counter: Cumulative metrics that only increase (e.g., total PMS requests)
    - Histogram: Observations bucketed by value (e.g., request latency)

Example:
    >>> from stay_settlement.metrics import settlement_outcomes
    >>> settlement_outcomes.labels(outcome="confirmed").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# PMS API Metrics
# =============================================================================

pms_requests = Counter(
    "stay_pms_requests_total",
    "Total PMS API requests made",
    ["endpoint", "status_code"],
)
"""
Counter for PMS API requests.

Labels:
    endpoint: Logical endpoint name (availability, rates, create_reservation, cancel_reservation)
    status_code: HTTP status code, or "error" / "timeout" when no response arrived
"""

pms_latency = Histogram(
    "stay_pms_latency_seconds",
    "PMS API request latency in seconds",
    ["endpoint"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float("inf")),
)

# =============================================================================
# Payment Processor Metrics
# =============================================================================

payment_requests = Counter(
    "stay_payment_requests_total",
    "Total payment processor API calls",
    ["operation", "outcome"],
)
"""
Counter for payment processor calls.

Labels:
    operation: create_checkout_session, refund
    outcome: success or failure
"""

# =============================================================================
# Pipeline Outcome Metrics
# =============================================================================

checkout_outcomes = Counter(
    "stay_checkout_outcomes_total",
    "Checkout session requests by outcome",
    ["outcome"],
)
"""
Labels:
    outcome: session_created, unavailable, price_mismatch, error
"""

settlement_outcomes = Counter(
    "stay_settlement_outcomes_total",
    "Payment webhook events by settlement outcome",
    ["outcome"],
)
"""
Labels:
    outcome: confirmed, duplicate, booking_missing, ignored, unpaid,
             pms_synced, pms_failed, refunded
"""

cancellation_outcomes = Counter(
    "stay_cancellation_outcomes_total",
    "Booking cancellations by outcome",
    ["outcome"],
)

event_log_write_failures = Counter(
    "stay_event_log_write_failures_total",
    "Event log entries that could not be persisted",
)
