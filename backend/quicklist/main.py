from __future__ import annotations

import datetime as dt
import logging
import secrets
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError

from .config import settings
from .formatter import FormatResult, VisitsPayload, build_itinerary, extract_salespeople
from .jobber import JobberClient, JobberError
from .middleware import RateLimitMiddleware
from .schemas import (
    AuthStatusResponse,
    FormatRequest,
    FormatResponse,
    ItineraryRequest,
    SalespeopleRequest,
    SalespeopleResponse,
)

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"
STATE_COOKIE = "oauth_state"
ACCESS_MAX_AGE = 3600
REFRESH_MAX_AGE = 86400 * 30
STATE_MAX_AGE = 600

LOCAL_TZ = ZoneInfo(settings.timezone)


def get_jobber_client() -> JobberClient:
    return JobberClient(settings)


app = FastAPI(title=settings.app_name)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _set_cookie(response: Response, key: str, value: str, max_age: int) -> None:
    response.set_cookie(
        key,
        value,
        max_age=max_age,
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
    )


def _store_tokens(response: Response, tokens: Dict[str, Any]) -> None:
    access_token = tokens.get("access_token")
    if access_token:
        _set_cookie(response, ACCESS_COOKIE, access_token, ACCESS_MAX_AGE)
    refresh_token = tokens.get("refresh_token")
    if refresh_token:
        _set_cookie(response, REFRESH_COOKIE, refresh_token, REFRESH_MAX_AGE)


def _access_token(request: Request, response: Response, client: JobberClient) -> Optional[str]:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    refresh_token = request.cookies.get(REFRESH_COOKIE)
    if not refresh_token:
        return None
    try:
        tokens = client.refresh(refresh_token)
    except JobberError as exc:
        logger.warning("Token refresh failed: %s", exc)
        return None
    _store_tokens(response, tokens)
    return tokens.get("access_token")


def _require_token(request: Request, response: Response, client: JobberClient) -> str:
    token = _access_token(request, response, client)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return token


def _fetch_range(client: JobberClient, token: str, start_day: dt.date, end_day: dt.date) -> Dict[str, Any]:
    if end_day < start_day:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="End date must not be before start date")
    start_param = f"{start_day.isoformat()}T00:00:00Z"
    end_param = f"{(end_day + dt.timedelta(days=1)).isoformat()}T00:00:00Z"
    try:
        return client.fetch_visits(token, start_param, end_param)
    except JobberError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to fetch visits") from exc


def _format(
    data: VisitsPayload,
    payload: FormatRequest | ItineraryRequest,
) -> FormatResponse:
    try:
        result: FormatResult = build_itinerary(
            data,
            payload.settings,
            payload.start_date,
            payload.end_date,
            payload.dialect,
            payload.filter_text,
            tz=LOCAL_TZ,
            maps_base_url=settings.maps_base_url,
            maps_locality=settings.maps_locality,
        )
        salespeople = extract_salespeople(data)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail="Invalid visits payload") from exc
    return FormatResponse(
        text=result.text,
        job_count=result.job_count,
        total=result.total,
        skipped=result.skipped,
        salespeople=salespeople,
    )


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/auth/jobber")
def auth_start(client: JobberClient = Depends(get_jobber_client)) -> RedirectResponse:
    state = secrets.token_urlsafe(24)
    response = RedirectResponse(client.authorization_url(state), status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    _set_cookie(response, STATE_COOKIE, state, STATE_MAX_AGE)
    return response


@app.get("/api/auth/jobber/callback")
def auth_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    client: JobberClient = Depends(get_jobber_client),
) -> Response:
    if not code:
        return JSONResponse({"error": "Authorization code not provided"}, status_code=status.HTTP_400_BAD_REQUEST)
    expected_state = request.cookies.get(STATE_COOKIE)
    if not expected_state or not state or not secrets.compare_digest(expected_state, state):
        return JSONResponse({"error": "Invalid OAuth state"}, status_code=status.HTTP_400_BAD_REQUEST)
    try:
        tokens = client.exchange_code(code)
    except JobberError as exc:
        details: Any = "Unknown error"
        if exc.response is not None:
            try:
                details = exc.response.json()
            except ValueError:
                details = exc.response.text
        return JSONResponse(
            {"error": "Authentication failed", "details": details},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    response = RedirectResponse("/", status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    _store_tokens(response, tokens)
    response.delete_cookie(STATE_COOKIE)
    return response


@app.get("/api/authenticated", response_model=AuthStatusResponse)
def authenticated(
    request: Request,
    response: Response,
    client: JobberClient = Depends(get_jobber_client),
) -> AuthStatusResponse:
    _require_token(request, response, client)
    return AuthStatusResponse(authenticated=True)


@app.get("/api/visits")
def visits(
    request: Request,
    response: Response,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    client: JobberClient = Depends(get_jobber_client),
) -> Any:
    token = _access_token(request, response, client)
    if not token:
        return JSONResponse({"error": "Not authenticated"}, status_code=status.HTTP_401_UNAUTHORIZED)
    if not startDate or not endDate:
        return JSONResponse(
            {"error": "startDate and endDate are required"}, status_code=status.HTTP_400_BAD_REQUEST
        )
    try:
        return client.fetch_visits(token, startDate, endDate)
    except JobberError:
        return JSONResponse({"error": "Failed to fetch visits"}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.post("/api/format", response_model=FormatResponse)
def format_payload(payload: FormatRequest) -> FormatResponse:
    return _format(payload.data, payload)


@app.post("/api/itinerary", response_model=FormatResponse)
def itinerary(
    payload: ItineraryRequest,
    request: Request,
    response: Response,
    client: JobberClient = Depends(get_jobber_client),
) -> FormatResponse:
    token = _require_token(request, response, client)
    data = _fetch_range(client, token, payload.start_date, payload.end_date)
    return _format(data, payload)


@app.post("/api/salespeople", response_model=SalespeopleResponse)
def salespeople(payload: SalespeopleRequest) -> SalespeopleResponse:
    try:
        names = extract_salespeople(payload.data)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail="Invalid visits payload") from exc
    return SalespeopleResponse(salespeople=names)
