"""Observability for collection operations.

Provides metrics and structured logging:
- Prometheus metrics for operations, fallback loads and store retries
- JSON structured logging with collection key and operation context
"""

from collectioncache.observability.logging import (
    LogContext,
    collection_key_var,
    configure_logging,
    get_logger,
    operation_var,
)
from collectioncache.observability.metrics import (
    get_metrics,
    metrics_registry,
    record_fallback_load,
    record_operation,
    record_store_retry,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    "collection_key_var",
    "operation_var",
    # Metrics
    "metrics_registry",
    "get_metrics",
    "record_operation",
    "record_fallback_load",
    "record_store_retry",
]
