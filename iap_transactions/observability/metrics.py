"""
Metrics Collection with Prometheus.

Counts fetch outcomes and decoding anomalies so a long-running host process
can expose them.
"""

from enum import Enum

from prometheus_client import Counter, Histogram

from iap_transactions.config import settings


class FetchOutcome(str, Enum):
    """Label values for the fetch outcome counter."""

    SUCCESS = "success"
    MALFORMED_REQUEST = "malformed_request"
    TRANSPORT_ERROR = "transport_error"
    DECODING_ERROR = "decoding_error"
    APPLICATION_ERROR = "application_error"


class FeedMetrics:
    """Centralized metrics for the transaction feed client."""

    def __init__(self) -> None:
        """Initialize all Prometheus metrics."""
        self.enabled = settings.metrics_enabled

        self.fetches_total = Counter(
            "iap_transactions_fetches_total",
            "Total transaction fetches by outcome",
            ["outcome"],
        )

        self.fetch_duration_seconds = Histogram(
            "iap_transactions_fetch_duration_seconds",
            "Transaction fetch duration in seconds",
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
        )

        self.records_decoded_total = Counter(
            "iap_transactions_records_decoded_total",
            "Total transaction records decoded",
        )

        self.fallback_ids_total = Counter(
            "iap_transactions_fallback_ids_total",
            "Records whose transactionID was replaced with a wall-clock fallback",
        )

    def record_fetch(self, outcome: FetchOutcome, duration: float, records: int = 0) -> None:
        """Record one completed fetch."""
        if not self.enabled:
            return
        self.fetches_total.labels(outcome=outcome.value).inc()
        self.fetch_duration_seconds.observe(duration)
        if records:
            self.records_decoded_total.inc(records)

    def record_fallback_ids(self, count: int) -> None:
        """Record substituted transaction ids."""
        if self.enabled and count:
            self.fallback_ids_total.inc(count)


# Global metrics instance
metrics = FeedMetrics()
