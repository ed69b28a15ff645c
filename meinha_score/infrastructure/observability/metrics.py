"""Prometheus metrics for score computations and admin overrides"""

from prometheus_client import Counter, Histogram

# Score metrics
score_computation_counter = Counter(
    "meinha_score_computations_total",
    "Total score computations",
    ["classification"],
)

score_value_histogram = Histogram(
    "meinha_score_value",
    "Distribution of computed scores",
    buckets=[100, 200, 300, 400, 500, 600, 700, 800, 900, 1000],
)

skipped_debts_counter = Counter(
    "meinha_skipped_debts_total",
    "Debts left out of a score because of malformed dates",
)

# Admin metrics
override_change_counter = Counter(
    "meinha_override_changes_total",
    "Payment override changes made by admins",
    ["action"],  # set | clear | clear_all
)

rules_update_counter = Counter(
    "meinha_rules_updates_total",
    "Score rule configuration updates",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_score(classification: str, score: int, skipped: int) -> None:
    """Record one computed score"""
    score_computation_counter.labels(classification=classification).inc()
    score_value_histogram.observe(score)
    if skipped:
        skipped_debts_counter.inc(skipped)
