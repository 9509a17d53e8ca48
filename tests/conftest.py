"""Shared pytest fixtures and configuration."""

from pathlib import Path

import pytest
from prometheus_client import REGISTRY

from langroute.core.loader import Loader
from langroute.core.request import RequestContext
from langroute.core.router import Router
from langroute.core.table import RouteTable

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def reset_prometheus_registry():
    """Reset Prometheus registry before each test to avoid duplicate metric errors."""
    # Get all collectors
    collectors = list(REGISTRY._collector_to_names.keys())

    # Unregister all collectors except default ones
    for collector in collectors:
        try:
            REGISTRY.unregister(collector)
        except Exception:
            pass  # Ignore errors for default collectors

    yield

    # Clean up after test
    collectors = list(REGISTRY._collector_to_names.keys())
    for collector in collectors:
        try:
            REGISTRY.unregister(collector)
        except Exception:
            pass


@pytest.fixture
def routes_file() -> Path:
    """Path of the YAML route fixture."""
    return FIXTURES / "routes.yml"


@pytest.fixture
def route_table(routes_file: Path) -> RouteTable:
    """Route table compiled from the YAML fixture."""
    return Loader().from_yaml([routes_file])


@pytest.fixture
def request_context() -> RequestContext:
    """GET request on example.com."""
    return RequestContext(method="GET", scheme="https", host="www.example.com")


@pytest.fixture
def router(route_table: RouteTable, request_context: RequestContext) -> Router:
    """Router over the fixture table, default language FR."""
    return Router(route_table, request_context, default_lang="FR")
