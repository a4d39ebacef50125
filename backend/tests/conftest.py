from __future__ import annotations

import base64
from typing import Any, Callable, Dict, Generator, List, Optional
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from quicklist.config import settings
from quicklist.jobber import JobberError
from quicklist.main import app, get_jobber_client


def encode_visit_id(number: int | str) -> str:
    return base64.b64encode(f"gid://Jobber/Visit/{number}".encode()).decode()


def make_edge(
    title: Optional[str],
    *,
    number: int = 1,
    start: str = "2024-03-05T09:00:00-08:00",
    end: str = "2024-03-05T11:30:00-08:00",
    total: Optional[float | int] = 150,
    salesperson: Optional[str] = "Dana",
    web_uri: str = "https://secure.getjobber.com/work_orders/42",
) -> Dict[str, Any]:
    job: Dict[str, Any] = {"jobberWebUri": web_uri, "total": total, "salesperson": None}
    if salesperson is not None:
        job["salesperson"] = {"name": {"first": salesperson, "last": "Smith"}}
    return {
        "node": {
            "id": encode_visit_id(number),
            "title": title,
            "startAt": start,
            "endAt": end,
            "job": job,
        }
    }


def wrap(edges: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"data": {"visits": {"edges": edges}}}


class FakeJobberClient:
    def __init__(self) -> None:
        self.visits_response: Dict[str, Any] = wrap([])
        self.tokens: Dict[str, Any] = {"access_token": "fresh-access", "refresh_token": "fresh-refresh"}
        self.fail_with: Optional[JobberError] = None
        self.calls: List[tuple] = []

    def authorization_url(self, state: str) -> str:
        return f"https://jobber.example/oauth/authorize?state={state}"

    def exchange_code(self, code: str) -> Dict[str, Any]:
        self.calls.append(("exchange_code", code))
        if self.fail_with:
            raise self.fail_with
        return self.tokens

    def refresh(self, refresh_token: str) -> Dict[str, Any]:
        self.calls.append(("refresh", refresh_token))
        if self.fail_with:
            raise self.fail_with
        return self.tokens

    def fetch_visits(self, access_token: str, start: str, end: str) -> Dict[str, Any]:
        self.calls.append(("fetch_visits", access_token, start, end))
        if self.fail_with:
            raise self.fail_with
        return self.visits_response


@pytest.fixture()
def edge_factory() -> Callable[..., Dict[str, Any]]:
    return make_edge


@pytest.fixture()
def pacific() -> ZoneInfo:
    return ZoneInfo("America/Los_Angeles")


@pytest.fixture()
def fake_jobber() -> FakeJobberClient:
    return FakeJobberClient()


@pytest.fixture(scope="function")
def client(fake_jobber: FakeJobberClient, monkeypatch) -> Generator[TestClient, None, None]:
    monkeypatch.setattr(settings, "rate_limit_per_minute", 0)
    app.dependency_overrides[get_jobber_client] = lambda: fake_jobber
    with TestClient(app, follow_redirects=False) as c:
        yield c
    app.dependency_overrides.clear()
