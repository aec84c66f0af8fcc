import logging

from fastapi.testclient import TestClient

import main
from main import create_app
from shortlink_app.dependencies import get_metrics
from shortlink_app.metrics import RequestMetrics
from shortlink_app.store.strategies import InMemoryURLStore


class RecordingProcessor:
    """Processor stand-in that remembers submissions"""

    def __init__(self):
        self.submitted = []
        self.stopped = False

    def submit(self, url, block=True):
        self.submitted.append((url, block))
        return True

    def results(self):
        return iter(())

    def stop(self, wait=True, timeout=None):
        self.stopped = True


class TestURLShortener:
    """Test URL shortener functionality"""

    def test_create_short_url(self, client: TestClient):
        """Test creating a short URL"""
        response = client.post("/api/shorten", json={"url": "https://www.google.com/"})
        assert response.status_code == 201

        data = response.json()
        assert len(data["code"]) == 8
        assert data["url"] == f"http://testserver/r/{data['code']}"
        assert "user_id" in response.cookies

    def test_create_with_alias(self, client: TestClient):
        response = client.post("/api/shorten", json={"url": "https://a.com", "alias": "home"})

        assert response.status_code == 201
        assert response.json()["code"] == "home"

    def test_alias_conflict(self, client: TestClient):
        """Second use of an alias is a 409 and keeps the first target"""
        client.post("/api/shorten", json={"url": "https://a.com", "alias": "home"})

        response = client.post("/api/shorten", json={"url": "https://b.com", "alias": "home"})
        assert response.status_code == 409
        assert response.json() == {"error": "Custom alias is already in use"}

        redirect = client.get("/r/home", follow_redirects=False)
        assert redirect.headers["location"] == "https://a.com"

    def test_invalid_alias(self, client: TestClient):
        response = client.post("/api/shorten", json={"url": "https://a.com", "alias": "ab"})

        assert response.status_code == 400
        assert "alias" in response.json()["error"].lower()

    def test_empty_url(self, client: TestClient):
        response = client.post("/api/shorten", json={"url": ""})

        assert response.status_code == 400
        assert response.json() == {"error": "URL is required"}
        assert client.get("/api/stats").json() == {"count": 0}

    def test_redirect_url(self, client: TestClient):
        """Test URL redirection"""
        create_response = client.post("/api/shorten", json={"url": "https://www.github.com/"})
        code = create_response.json()["code"]

        response = client.get(f"/r/{code}", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "https://www.github.com/"

    def test_redirect_nonexistent_url(self, client: TestClient):
        """Test redirecting non-existent URL"""
        response = client.get("/r/doesnotexist", follow_redirects=False)

        assert response.status_code == 404
        assert response.json() == {"error": "Code not found"}

    def test_list_user_urls_newest_first(self, client: TestClient):
        """The user_id cookie ties listings to the caller"""
        first = client.post("/api/shorten", json={"url": "https://one.com"}).json()["code"]
        second = client.post("/api/shorten", json={"url": "https://two.com"}).json()["code"]

        response = client.get("/api/urls")
        assert response.status_code == 200

        data = response.json()
        assert [item["code"] for item in data] == [second, first]
        assert data[0]["original_url"] == "https://two.com"
        assert data[0]["short_url"] == f"http://testserver/r/{second}"
        assert "created_at" in data[0]

    def test_other_user_sees_nothing(self, client: TestClient):
        client.post("/api/shorten", json={"url": "https://one.com"})

        client.cookies.clear()
        response = client.get("/api/urls")

        assert response.status_code == 200
        assert response.json() == []

    def test_stats(self, client: TestClient):
        client.post("/api/shorten", json={"url": "https://one.com"})
        client.post("/api/shorten", json={"url": "https://two.com"})

        assert client.get("/api/stats").json() == {"count": 2}


class TestServiceEndpoints:
    """Health and metrics"""

    def test_health(self, client: TestClient):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.text == "OK"

    def test_request_id_header(self, client: TestClient):
        response = client.get("/api/health")
        assert response.headers["X-Request-ID"]

    def test_metrics_count_requests(self, client: TestClient):
        client.get("/api/health")
        client.get("/r/doesnotexist", follow_redirects=False)

        response = client.get("/api/metrics")

        assert response.status_code == 200
        assert "Total Requests: 2" in response.text
        assert "Failed Requests: 1" in response.text
        assert "/api/health: 1" in response.text

    def test_metrics_are_per_app(self, test_settings):
        """Two apps never share counters"""
        first_metrics, second_metrics = RequestMetrics(), RequestMetrics()
        first = create_app(settings=test_settings, store=InMemoryURLStore(), metrics=first_metrics)
        second = create_app(settings=test_settings, store=InMemoryURLStore(), metrics=second_metrics)

        with TestClient(first) as c1, TestClient(second):
            c1.get("/api/health")

        assert first_metrics.total_requests == 1
        assert second_metrics.total_requests == 0

    def test_metrics_route_reads_injected_metrics(self, test_settings):
        app = create_app(settings=test_settings, store=InMemoryURLStore())
        replacement = RequestMetrics()
        replacement.record("/elsewhere", 200, 0.001)
        app.dependency_overrides[get_metrics] = lambda: replacement

        with TestClient(app) as client:
            response = client.get("/api/metrics")

        assert "/elsewhere: 1" in response.text
        assert "/api/health" not in response.text

    def test_startup_logs_environment(self, test_settings, caplog):
        test_settings.environment = "staging"
        app = create_app(settings=test_settings, store=InMemoryURLStore())
        caplog.set_level(logging.INFO, logger="shortlink_app")

        with TestClient(app):
            pass

        assert "(staging)" in caplog.text


class TestRun:
    """Serving from the command line"""

    def test_run_uses_configured_host_and_port(self, test_settings, monkeypatch):
        calls = []
        monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
        test_settings.host = "0.0.0.0"
        test_settings.port = 9090

        main.run(test_settings)

        [(app, kwargs)] = calls
        assert kwargs == {"host": "0.0.0.0", "port": 9090}
        assert app.state.settings is test_settings


class TestBackgroundProbe:
    """Shortening hands the URL to the processor without waiting"""

    def test_shorten_submits_without_blocking(self, test_settings):
        processor = RecordingProcessor()
        app = create_app(settings=test_settings, store=InMemoryURLStore(), processor=processor)

        with TestClient(app) as client:
            client.post("/api/shorten", json={"url": "https://example.com"})

        assert processor.submitted == [("https://example.com", False)]
        assert processor.stopped

    def test_failed_shorten_submits_nothing(self, test_settings):
        processor = RecordingProcessor()
        app = create_app(settings=test_settings, store=InMemoryURLStore(), processor=processor)

        with TestClient(app) as client:
            client.post("/api/shorten", json={"url": "https://a.com", "alias": "x"})

        assert processor.submitted == []
