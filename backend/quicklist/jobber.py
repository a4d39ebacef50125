"""HTTP client for the Jobber OAuth and GraphQL endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests

from .config import Settings

logger = logging.getLogger(__name__)

VISITS_QUERY = """
query VisitsByDateRange($start: ISO8601DateTime!, $end: ISO8601DateTime!) {
  visits(
    filter: { startAt: { after: $start, before: $end } }
    sort: { key: START_AT, direction: ASCENDING }
    timezone: "%(timezone)s"
  ) {
    edges {
      node {
        id
        title
        startAt
        endAt
        job {
          jobType
          jobberWebUri
          total
          salesperson {
            name {
              first
              last
            }
          }
        }
      }
    }
  }
}
"""


class JobberError(RuntimeError):
    """Failure talking to Jobber."""

    def __init__(self, message: str, *, response: Optional[requests.Response] = None) -> None:
        super().__init__(message)
        self.response = response

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None


class JobberClient:
    """Wraps the OAuth token exchange and the visits query."""

    def __init__(self, config: Settings) -> None:
        self.config = config
        self.timeout = config.request_timeout

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = requests.request(method, url, **kwargs)
        except requests.RequestException as exc:
            logger.error("Jobber request to %s failed: %s", url, exc)
            raise JobberError(str(exc)) from exc

        if response.status_code >= 400:
            logger.error(
                "Jobber responded %s for %s: %s",
                response.status_code,
                url,
                response.text,
            )
            raise JobberError(f"Jobber error {response.status_code}", response=response)
        return response.json()

    # ------------------------------------------------------------------
    # OAuth
    # ------------------------------------------------------------------
    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.config.jobber_client_id or "",
            "redirect_uri": self.config.jobber_callback_url or "",
            "scope": self.config.jobber_scope,
            "response_type": "code",
            "state": state,
        }
        return f"{self.config.jobber_authorization_url}?{urlencode(params)}"

    def exchange_code(self, code: str) -> Dict[str, Any]:
        logger.info("Exchanging authorization code %s... for tokens", code[:10])
        return self._request(
            "POST",
            self.config.jobber_token_url,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.config.jobber_callback_url or "",
                "client_id": self.config.jobber_client_id or "",
                "client_secret": self.config.jobber_client_secret or "",
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

    def refresh(self, refresh_token: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            self.config.jobber_token_url,
            data={
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self.config.jobber_client_id or "",
                "client_secret": self.config.jobber_client_secret or "",
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

    # ------------------------------------------------------------------
    # GraphQL
    # ------------------------------------------------------------------
    def fetch_visits(self, access_token: str, start: str, end: str) -> Dict[str, Any]:
        payload = {
            "query": VISITS_QUERY % {"timezone": self.config.timezone},
            "variables": {"start": start, "end": end},
        }
        data = self._request(
            "POST",
            self.config.jobber_api_url,
            json=payload,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
                "X-JOBBER-GRAPHQL-VERSION": self.config.jobber_api_version,
            },
        )
        if isinstance(data, dict) and data.get("errors"):
            logger.warning("Jobber GraphQL returned errors: %s", data["errors"])
        return data
