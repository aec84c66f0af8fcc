"""
Test configuration and fixtures for the URL shortener.
This centralizes all test setup, making individual tests clean.
"""

import itertools
from datetime import datetime, timedelta, timezone

import pytest
import requests
from fastapi.testclient import TestClient

from main import create_app
from shortlink_app.config import Settings
from shortlink_app.store.strategies import InMemoryURLStore, SQLURLStore


class StepClock:
    """Deterministic clock: every call is one second after the previous one"""

    def __init__(self, start=datetime(2025, 1, 1, tzinfo=timezone.utc)):
        self.start = start
        self._ticks = itertools.count()

    def __call__(self) -> datetime:
        return self.start + timedelta(seconds=next(self._ticks))


class FakeResponse:
    def __init__(self, status_code=200, content_type="text/html; charset=utf-8"):
        self.status_code = status_code
        self.headers = {"Content-Type": content_type}
        self.closed = False

    def close(self):
        self.closed = True


class FakeSession:
    """
    Stand-in for requests.Session used by the URL processor.

    URL keywords select the outcome:
    - "unreachable" -> ConnectionError
    - "slow"        -> Timeout
    - "missing"     -> 404 response
    - "moved"       -> 301 to a text/html page, followed only when
                       allow_redirects is set
    """

    def __init__(self, calls):
        self.calls = calls
        self.closed = False

    def head(self, url, timeout=None, headers=None, allow_redirects=True):
        self.calls.append({
            "url": url,
            "timeout": timeout,
            "headers": headers or {},
            "allow_redirects": allow_redirects
        })
        if "unreachable" in url:
            raise requests.ConnectionError("connection refused")
        if "slow" in url:
            raise requests.Timeout("read timed out")
        if "missing" in url:
            return FakeResponse(status_code=404, content_type="text/plain")
        if "moved" in url and not allow_redirects:
            return FakeResponse(status_code=301, content_type="")
        return FakeResponse()

    def close(self):
        self.closed = True


@pytest.fixture
def http_calls():
    """Every HEAD request issued through fake sessions"""
    return []


@pytest.fixture
def session_factory(http_calls):
    return lambda: FakeSession(http_calls)


@pytest.fixture
def sql_store(tmp_path):
    """Relational store on a throwaway SQLite file"""
    store = SQLURLStore(f"sqlite:///{tmp_path / 'urls.db'}", clock=StepClock())
    try:
        yield store
    finally:
        store.close()


@pytest.fixture(params=["memory", "sql"])
def store(request, tmp_path):
    """Runs a test once per backend"""
    if request.param == "memory":
        yield InMemoryURLStore(clock=StepClock())
        return

    store = SQLURLStore(f"sqlite:///{tmp_path / 'urls.db'}", clock=StepClock())
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def test_settings():
    return Settings(
        base_url="http://testserver",
        worker_count=0,  # probes are tested separately
        store_backend="memory",
        database_url=None,
        log_level="WARNING"
    )


@pytest.fixture
def client(test_settings):
    """
    Test client for an app with a fresh in-memory store.
    This is the main fixture that API tests will use.
    """
    app = create_app(settings=test_settings, store=InMemoryURLStore())

    with TestClient(app) as test_client:
        yield test_client
