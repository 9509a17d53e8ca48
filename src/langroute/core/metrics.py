"""Metrics module for the router.

Counts route lookups, lookup cache hits and URL generation errors with
Prometheus collectors.
"""

from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from langroute.core.config import MetricsConfig
from langroute.core.exceptions import RouteGenerationError


class RouterMetrics:
    """Router metrics collector using Prometheus."""

    def __init__(self, config: MetricsConfig, registry: Optional[CollectorRegistry] = None):
        """Initialize the metrics collector.

        Args:
            config: Metrics configuration
            registry: Registry to register collectors in (default: global registry)
        """
        self.config = config
        self.registry = registry if registry is not None else REGISTRY
        prefix = config.namespace

        self.lookups_total = Counter(
            f"{prefix}_lookups_total",
            "Total number of route lookups",
            ["result"],
            registry=self.registry,
        )

        self.lookup_duration = Histogram(
            f"{prefix}_lookup_duration_seconds",
            "Route lookup latency in seconds",
            buckets=(0.00001, 0.00005, 0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05),
            registry=self.registry,
        )

        self.lookup_cache_hits = Counter(
            f"{prefix}_lookup_cache_hits_total",
            "Total number of lookups answered from the per-router cache",
            registry=self.registry,
        )

        self.url_errors = Counter(
            f"{prefix}_url_errors_total",
            "Total number of URL generation errors",
            ["kind"],
            registry=self.registry,
        )

        self.routes = Gauge(
            f"{prefix}_routes",
            "Number of route identifiers in the route table",
            registry=self.registry,
        )

    def record_lookup(self, found: bool, duration_seconds: float) -> None:
        """Record a route lookup.

        Args:
            found: Whether a route matched
            duration_seconds: Lookup duration in seconds
        """
        if not self.config.enabled:
            return
        self.lookups_total.labels(result="hit" if found else "miss").inc()
        self.lookup_duration.observe(duration_seconds)

    def record_cache_hit(self) -> None:
        if self.config.enabled:
            self.lookup_cache_hits.inc()

    def record_url_error(self, error: Exception) -> None:
        """Record a URL generation error.

        Args:
            error: The recorded error
        """
        if not self.config.enabled:
            return
        kind = error.kind if isinstance(error, RouteGenerationError) else "other"
        self.url_errors.labels(kind=kind).inc()

    def set_route_count(self, count: int) -> None:
        if self.config.enabled:
            self.routes.set(count)

    def export_metrics(self) -> bytes:
        """Export metrics in Prometheus text format.

        Returns:
            Metrics in Prometheus exposition format
        """
        return generate_latest(self.registry)


# Global metrics instance (will be initialized by the application)
_router_metrics: Optional[RouterMetrics] = None


def initialize_metrics(config: MetricsConfig) -> RouterMetrics:
    """Initialize the global router metrics.

    Args:
        config: Metrics configuration

    Returns:
        Initialized RouterMetrics instance
    """
    global _router_metrics
    _router_metrics = RouterMetrics(config)
    return _router_metrics


def get_metrics() -> RouterMetrics:
    """Get the global router metrics.

    Returns:
        The global RouterMetrics instance

    Raises:
        RuntimeError: If metrics have not been initialized
    """
    if _router_metrics is None:
        raise RuntimeError("Metrics not initialized. Call initialize_metrics() first.")
    return _router_metrics
