"""Prometheus metrics for auto-pay, overdue sweeps, payments and forecasts"""

from prometheus_client import Counter, Histogram

from oar_bills.domain.models import AutoPayResult

# Auto-pay metrics
autopay_bills_counter = Counter(
    "oar_autopay_bills_total",
    "Auto-pay bills handled by the batch runner",
    ["outcome"],  # processed | failed
)

autopay_batch_histogram = Histogram(
    "oar_autopay_batch_seconds",
    "Auto-pay batch duration",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
)

# Sweep metrics
overdue_updated_counter = Counter(
    "oar_overdue_marked_total",
    "Bills moved from pending to overdue by the daily sweep",
)

# Payment metrics
payments_logged_counter = Counter(
    "oar_payments_logged_total",
    "Payments recorded against bills",
    ["kind"],  # full | partial | historical
)

bill_recomputations_counter = Counter(
    "oar_bill_recomputations_total",
    "Bill states rebuilt from payment history after an edit or delete",
)

# Forecast metrics
forecast_duration_histogram = Histogram(
    "oar_forecast_seconds",
    "Forecast projection latency",
    ["scope"],  # month | range
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_autopay(result: AutoPayResult) -> None:
    """Record per-bill outcomes of an auto-pay batch"""
    autopay_bills_counter.labels(outcome="processed").inc(result.processed)
    autopay_bills_counter.labels(outcome="failed").inc(result.failed)


def record_payment(is_historical: bool, advance_cycle: bool) -> None:
    if is_historical:
        kind = "historical"
    elif advance_cycle:
        kind = "full"
    else:
        kind = "partial"
    payments_logged_counter.labels(kind=kind).inc()
