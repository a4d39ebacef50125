from __future__ import annotations

import os
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")
    """Application runtime configuration."""

    app_name: str = "QuickList"
    environment: str = "development"
    host: str = os.getenv("QL_HOST", "127.0.0.1")
    port: int = int(os.getenv("QL_PORT", "3000"))
    log_level: str = os.getenv("QL_LOG_LEVEL", "INFO")
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            origin.strip()
            for origin in os.getenv("QL_CORS_ORIGINS", "http://127.0.0.1:3000,http://localhost:3000").split(",")
            if origin.strip()
        ]
    )
    behind_proxy: bool = os.getenv("QL_BEHIND_PROXY", "false").lower() == "true"
    secure_cookies: bool = os.getenv("QL_SECURE_COOKIES", "false").lower() == "true"
    rate_limit_per_minute: int = int(os.getenv("QL_RATE_LIMIT", "100"))

    jobber_client_id: Optional[str] = os.getenv("JOBBER_CLIENT_ID")
    jobber_client_secret: Optional[str] = os.getenv("JOBBER_CLIENT_SECRET")
    jobber_authorization_url: str = os.getenv(
        "JOBBER_AUTHORIZATION_URL", "https://api.getjobber.com/api/oauth/authorize"
    )
    jobber_token_url: str = os.getenv("JOBBER_TOKEN_URL", "https://api.getjobber.com/api/oauth/token")
    jobber_callback_url: Optional[str] = os.getenv("JOBBER_CALLBACK_URL")
    jobber_scope: str = os.getenv("JOBBER_SCOPE", "read:visits")
    jobber_api_url: str = os.getenv("JOBBER_API_URL", "https://api.getjobber.com/api/graphql")
    jobber_api_version: str = os.getenv("JOBBER_API_VERSION", "2023-11-15")

    timezone: str = os.getenv("QL_TIMEZONE", "America/Los_Angeles")
    maps_base_url: str = os.getenv("QL_MAPS_BASE_URL", "https://www.google.com/maps/place/")
    maps_locality: str = os.getenv("QL_MAPS_LOCALITY", "Spokane,WA")
    request_timeout: int = int(os.getenv("QL_REQUEST_TIMEOUT", "15"))

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, list):
            return value
        if not value:
            return []
        return [origin.strip() for origin in value.split(",") if origin.strip()]

    @field_validator("rate_limit_per_minute")
    @classmethod
    def _non_negative_limit(cls, value: int) -> int:
        return max(0, value)


settings = Settings()
