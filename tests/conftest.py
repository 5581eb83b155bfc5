"""Shared pytest fixtures for stress-probe tests.

This module provides common fixtures for testing the stress-probe application.
All fixtures that are used across multiple test files should be defined here.
"""

import time

import pytest
from prometheus_client import REGISTRY

from stress_probe.app import create_app

# Nothing listens on the discard port, so metadata lookups fail fast
UNREACHABLE_METADATA_URL = "http://127.0.0.1:9"

TEST_WORKERS = 2


def _clear_prometheus_registry():
    """Clear all Prometheus collectors to avoid duplicates between tests.

    Prometheus uses a global registry, so collectors registered in one test
    persist to the next. This helper ensures test isolation.
    """
    collectors = list(REGISTRY._collector_to_names.keys())
    for collector in collectors:
        try:
            REGISTRY.unregister(collector)
        except ValueError:
            # Collector was already unregistered
            pass


def _make_app(api_key=None):
    test_app = create_app({
        "API_KEY": api_key,
        "STRESS_WORKERS": TEST_WORKERS,
        "METADATA_URL": UNREACHABLE_METADATA_URL,
        "METADATA_TIMEOUT": 0.5,
    })
    test_app.config["TESTING"] = True
    return test_app


@pytest.fixture(autouse=True)
def clean_prometheus():
    """Automatically clean Prometheus registry before and after each test.

    This fixture runs automatically for every test to ensure clean state.
    """
    _clear_prometheus_registry()
    yield
    _clear_prometheus_registry()


@pytest.fixture
def app():
    """Create Flask application for testing with auth disabled.

    Debug mode enabled to simulate development environment (disables HSTS).
    Any campaign a test leaves running is stopped on teardown.
    """
    test_app = _make_app()
    test_app.debug = True
    yield test_app
    test_app.extensions["stress_probe"].controller.stop()


@pytest.fixture
def client(app):
    """Create test client with auth disabled."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture
def controller(app):
    """The StressController wired into the test app."""
    return app.extensions["stress_probe"].controller


@pytest.fixture
def app_with_auth():
    """Create Flask application with authentication enabled.

    The expected API key is 'test-api-key-12345'.
    """
    test_app = _make_app(api_key="test-api-key-12345")
    test_app.debug = True
    yield test_app
    test_app.extensions["stress_probe"].controller.stop()


@pytest.fixture
def client_with_auth(app_with_auth):
    """Create test client with authentication enabled."""
    with app_with_auth.test_client() as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    """Return headers with valid API key for authenticated requests."""
    return {"X-API-Key": "test-api-key-12345"}


@pytest.fixture
def client_production():
    """Create test client in production mode (HSTS enabled)."""
    test_app = _make_app()
    test_app.debug = False
    with test_app.test_client() as test_client:
        yield test_client


@pytest.fixture
def wait_for():
    """Poll a predicate until it is true or the timeout expires.

    Returns the final value of the predicate.
    """

    def _wait_for(predicate, timeout=10.0, interval=0.05):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return bool(predicate())

    return _wait_for
