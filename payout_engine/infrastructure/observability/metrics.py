"""Prometheus metrics for monitoring risk tiers, reserves and batch throughput"""

from prometheus_client import Counter, Histogram
from payout_engine.domain.policy import reserve_bucket

# Decision metrics
decision_counter = Counter(
    "payout_decision_total",
    "Total merchant risk decisions made",
    ["risk_level", "simulation"],
)

reserve_bucket_counter = Counter(
    "payout_reserve_bucket",
    "Decisions by rolling reserve bucket",
    ["bucket"],  # 0_PERCENT | 10_PERCENT | 20_PERCENT
)

# Batch metrics
batch_duration_histogram = Histogram(
    "payout_batch_duration_seconds",
    "Batch evaluation wall time",
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

batch_item_counter = Counter(
    "payout_batch_items_total",
    "Batch items by outcome",
    ["outcome"],  # success | failure | abandoned
)

high_risk_counter = Counter(
    "payout_high_risk_merchants_total",
    "Merchants flagged for manual review in batches",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_decision(risk_level: str, reserve_percentage: int, simulation: bool) -> None:
    """Record decision metrics for monitoring tier and reserve distribution"""
    decision_counter.labels(risk_level=risk_level, simulation=str(simulation).lower()).inc()
    reserve_bucket_counter.labels(bucket=reserve_bucket(reserve_percentage)).inc()


def record_batch(duration_seconds: float, successful: int, failed: int, abandoned: int, high_risk: int) -> None:
    batch_duration_histogram.observe(duration_seconds)
    batch_item_counter.labels(outcome="success").inc(successful)
    batch_item_counter.labels(outcome="failure").inc(failed)
    batch_item_counter.labels(outcome="abandoned").inc(abandoned)
    high_risk_counter.inc(high_risk)
