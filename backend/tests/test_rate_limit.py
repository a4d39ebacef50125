from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from quicklist.config import settings
from quicklist.middleware import RateLimitMiddleware


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _build_app(limit: int, clock: FakeClock) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, limit=limit, clock=clock)

    @app.get("/api/ping")
    def api_ping() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/ping")
    def ping() -> dict[str, str]:
        return {"status": "ok"}

    return app


def test_requests_over_the_limit_are_rejected() -> None:
    app = _build_app(2, FakeClock())
    with TestClient(app) as client:
        assert client.get("/api/ping").status_code == 200
        assert client.get("/api/ping").status_code == 200
        response = client.get("/api/ping")
    assert response.status_code == 429
    assert response.json() == {"detail": "Too many requests"}


def test_non_api_routes_are_not_limited() -> None:
    app = _build_app(1, FakeClock())
    with TestClient(app) as client:
        responses = [client.get("/ping") for _ in range(5)]
    assert all(response.status_code == 200 for response in responses)


def test_window_slides() -> None:
    clock = FakeClock()
    app = _build_app(1, clock)
    with TestClient(app) as client:
        assert client.get("/api/ping").status_code == 200
        assert client.get("/api/ping").status_code == 429
        clock.now += 61
        assert client.get("/api/ping").status_code == 200


def test_forwarded_clients_are_counted_separately(monkeypatch) -> None:
    monkeypatch.setattr(settings, "behind_proxy", True)
    app = _build_app(1, FakeClock())
    with TestClient(app) as client:
        first = client.get("/api/ping", headers={"X-Forwarded-For": "192.0.2.25"})
        second = client.get("/api/ping", headers={"X-Forwarded-For": "192.0.2.26, 10.0.0.1"})
        repeat = client.get("/api/ping", headers={"X-Forwarded-For": "192.0.2.25"})
    assert (first.status_code, second.status_code, repeat.status_code) == (200, 200, 429)


def test_idle_clients_are_forgotten() -> None:
    clock = FakeClock()
    limiter = RateLimitMiddleware(FastAPI(), limit=5, clock=clock)
    for index in range(1000):
        assert limiter._allow(f"198.51.100.{index}")
    clock.now += 3600
    assert limiter._allow("203.0.113.9")
    assert list(limiter._hits) == ["203.0.113.9"]


def test_cleanup_keeps_clients_inside_the_window() -> None:
    clock = FakeClock()
    limiter = RateLimitMiddleware(FastAPI(), limit=1, clock=clock)
    assert limiter._allow("192.0.2.1")
    clock.now += 59
    assert limiter._allow("192.0.2.2")
    clock.now += 2
    assert limiter._allow("192.0.2.3")
    assert sorted(limiter._hits) == ["192.0.2.2", "192.0.2.3"]
    assert not limiter._allow("192.0.2.2")


def test_zero_limit_disables_the_check() -> None:
    app = _build_app(0, FakeClock())
    with TestClient(app) as client:
        responses = [client.get("/api/ping") for _ in range(5)]
    assert all(response.status_code == 200 for response in responses)
