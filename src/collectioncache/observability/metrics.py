"""Prometheus metrics for collection operations.

Provides metrics collection and exposure:
- Operation metrics (count by outcome, latency)
- Fallback load metrics (lazy initialization outcomes)
- Store retry metrics

Usage:
    from collectioncache.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.operations_total.labels(operation="read", outcome="success").inc()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram
from prometheus_client import generate_latest as prometheus_generate_latest

from collectioncache.config import settings

logger = logging.getLogger(__name__)


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    operations_total: Any = None
    operation_duration_seconds: Any = None
    fallback_loads_total: Any = None
    store_retries_total: Any = None

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _registry: CollectorRegistry | None = field(default=None, repr=False)

    def initialize(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if not settings.enable_metrics:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        self._registry = registry or REGISTRY

        self.operations_total = Counter(
            "collectioncache_operations_total",
            "Collection operations executed",
            ["operation", "outcome"],
            registry=self._registry,
        )

        self.operation_duration_seconds = Histogram(
            "collectioncache_operation_duration_seconds",
            "Collection operation latency in seconds",
            ["operation"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 10.0),
            registry=self._registry,
        )

        self.fallback_loads_total = Counter(
            "collectioncache_fallback_loads_total",
            "Collections populated from the fallback producer",
            ["outcome"],
            registry=self._registry,
        )

        self.store_retries_total = Counter(
            "collectioncache_store_retries_total",
            "Store calls retried after a transient failure",
            ["operation"],
            registry=self._registry,
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if not settings.enable_metrics or self._registry is None:
            return b"# Metrics disabled\n"
        return prometheus_generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


def record_operation(operation: str, outcome: str, duration: float) -> None:
    """Record a finished collection operation.

    Args:
        operation: Operation type (read, add, update, delete, replace)
        outcome: "success" or "failure"
        duration: Operation duration in seconds
    """
    metrics = get_metrics()
    if metrics.operations_total:
        metrics.operations_total.labels(operation=operation, outcome=outcome).inc()
    if metrics.operation_duration_seconds:
        metrics.operation_duration_seconds.labels(operation=operation).observe(duration)


def record_fallback_load(outcome: str) -> None:
    """Record a fallback producer invocation."""
    metrics = get_metrics()
    if metrics.fallback_loads_total:
        metrics.fallback_loads_total.labels(outcome=outcome).inc()


def record_store_retry(operation: str) -> None:
    """Record a retried store call."""
    metrics = get_metrics()
    if metrics.store_retries_total:
        metrics.store_retries_total.labels(operation=operation).inc()
