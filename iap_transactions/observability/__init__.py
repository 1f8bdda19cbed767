"""
Observability module - Logging and Metrics.
"""

from iap_transactions.observability.logging import get_logger, log_context, setup_logging
from iap_transactions.observability.metrics import FetchOutcome, metrics

__all__ = [
    "FetchOutcome",
    "get_logger",
    "log_context",
    "metrics",
    "setup_logging",
]
