"""Prometheus metrics for monitoring quote conversions and finance API calls"""

from prometheus_client import Counter, Histogram

# Conversion metrics
conversion_counter = Counter(
    "finance_quote_conversion_total",
    "Quote conversion attempts",
    ["outcome"],  # converted | partial | mismatch
)

plan_size_bucket_counter = Counter(
    "finance_installment_plan_size",
    "Submitted installment plans by number of installments",
    ["bucket"],  # 1, 2-3, 4-6, 7+
)

# Finance API metrics
finance_api_latency_histogram = Histogram(
    "finance_api_latency_seconds",
    "Revenue / quote endpoint response time",
    ["operation"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

finance_api_failure_counter = Counter(
    "finance_api_failures_total",
    "Failed revenue / quote endpoint calls",
    ["operation"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_conversion(outcome: str, installment_count: int) -> None:
    """Record conversion outcome and plan size distribution"""
    conversion_counter.labels(outcome=outcome).inc()

    if installment_count <= 1:
        bucket = "1"
    elif installment_count <= 3:
        bucket = "2-3"
    elif installment_count <= 6:
        bucket = "4-6"
    else:
        bucket = "7+"

    plan_size_bucket_counter.labels(bucket=bucket).inc()
