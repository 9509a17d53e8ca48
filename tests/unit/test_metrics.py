"""Unit tests for metrics module."""

import pytest
from prometheus_client import CollectorRegistry

from langroute.core import metrics as router_metrics_module
from langroute.core.config import MetricsConfig
from langroute.core.exceptions import RouteGenerationError
from langroute.core.metrics import RouterMetrics, get_metrics, initialize_metrics


@pytest.fixture
def registry() -> CollectorRegistry:
    """Create an isolated collector registry."""
    return CollectorRegistry()


@pytest.fixture
def router_metrics(registry: CollectorRegistry) -> RouterMetrics:
    """Create a test router metrics instance."""
    return RouterMetrics(MetricsConfig(enabled=True), registry=registry)


def test_record_lookup(router_metrics: RouterMetrics, registry: CollectorRegistry) -> None:
    """Test recording lookups."""
    router_metrics.record_lookup(True, 0.0002)
    router_metrics.record_lookup(True, 0.0001)
    router_metrics.record_lookup(False, 0.0003)

    assert registry.get_sample_value("langroute_lookups_total", {"result": "hit"}) == 2
    assert registry.get_sample_value("langroute_lookups_total", {"result": "miss"}) == 1
    assert registry.get_sample_value("langroute_lookup_duration_seconds_count") == 3


def test_record_url_error(router_metrics: RouterMetrics, registry: CollectorRegistry) -> None:
    """Test URL errors are labelled by kind."""
    router_metrics.record_url_error(RouteGenerationError("x", kind="missing_param"))
    router_metrics.record_url_error(ValueError("x"))

    assert registry.get_sample_value("langroute_url_errors_total", {"kind": "missing_param"}) == 1
    assert registry.get_sample_value("langroute_url_errors_total", {"kind": "other"}) == 1


def test_route_count_and_cache_hits(router_metrics: RouterMetrics, registry: CollectorRegistry) -> None:
    """Test the route gauge and cache hit counter."""
    router_metrics.set_route_count(12)
    router_metrics.record_cache_hit()

    assert registry.get_sample_value("langroute_routes") == 12
    assert registry.get_sample_value("langroute_lookup_cache_hits_total") == 1


def test_disabled_metrics(registry: CollectorRegistry) -> None:
    """Test recording is a no-op when disabled."""
    metrics = RouterMetrics(MetricsConfig(enabled=False), registry=registry)

    metrics.record_lookup(True, 0.1)
    metrics.record_cache_hit()
    metrics.set_route_count(3)

    assert registry.get_sample_value("langroute_lookups_total", {"result": "hit"}) is None
    assert registry.get_sample_value("langroute_lookup_cache_hits_total") == 0
    assert registry.get_sample_value("langroute_routes") == 0


def test_namespace(registry: CollectorRegistry) -> None:
    """Test metric names use the configured namespace."""
    metrics = RouterMetrics(MetricsConfig(namespace="site"), registry=registry)
    metrics.record_cache_hit()

    assert registry.get_sample_value("site_lookup_cache_hits_total") == 1


def test_export_metrics(router_metrics: RouterMetrics) -> None:
    """Test metrics export."""
    router_metrics.record_lookup(True, 0.001)

    exported = router_metrics.export_metrics()

    assert isinstance(exported, bytes)
    assert b"langroute_lookups_total" in exported


def test_global_metrics(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test global metrics initialization."""
    monkeypatch.setattr(router_metrics_module, "_router_metrics", None)

    with pytest.raises(RuntimeError, match="Metrics not initialized"):
        get_metrics()

    metrics = initialize_metrics(MetricsConfig())
    assert get_metrics() is metrics
