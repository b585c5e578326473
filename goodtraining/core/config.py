"""Application configuration using Pydantic Settings.

Configuration is loaded from environment variables.

Optionally, point `ENV_FILE` at a local env file for development. Values
already present in the environment always win over the file.
"""

import os
from enum import Enum

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnvironment(str, Enum):
    """Application environment values."""

    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


class Settings(BaseSettings):
    """
    Application settings with type validation.

    The web app holds no data of its own. Everything below configures how it
    renders pages and how it reaches the REST backend.
    """

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE") or None, env_prefix="", extra="ignore"
    )

    # Application
    app_env: AppEnvironment = AppEnvironment.LOCAL
    app_name: str = "goodtraining-web"
    app_log_level: str = "INFO"

    # Observability
    observability_enabled: bool = True
    observability_structured_logs: bool = True
    observability_request_id_header: str = "X-Request-ID"

    # OpenTelemetry Configuration
    otel_enabled: bool = True
    otel_service_name: str = "goodtraining-web"
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_exporter_otlp_headers: str | None = None
    otel_traces_sampler: str = "parent_trace_always"
    otel_traces_sampler_arg: float = 1.0

    # REST backend
    backend_api_url: str = "http://localhost:5000"
    backend_timeout_seconds: float = 10.0
    # Extra attempts for idempotent data fetches (supervisor and article lists)
    backend_retry_count: int = Field(default=1, ge=0, le=3)
    backend_circuit_failure_threshold: int = Field(default=5, ge=1)
    backend_circuit_timeout_seconds: int = Field(default=30, ge=1)

    # When set, session tokens are verified with this secret (HS256).
    # Otherwise claims are only read for display and the backend stays the authority.
    backend_jwt_secret: str | None = None
    backend_jwt_algorithm: str = "HS256"

    # Session cookie
    auth_cookie_name: str = "auth_token"
    auth_cookie_max_age_seconds: int = 7 * 24 * 60 * 60
    cookie_secure: bool = False

    # Metrics token for protecting /metrics endpoint
    metrics_token: str | None = None

    # Health check token for protecting /health and /readyz endpoints (optional)
    # When set, these endpoints require X-Health-Token header
    health_token: str | None = None

    @property
    def backend_base_url(self) -> str:
        """Backend URL without a trailing slash."""
        return self.backend_api_url.rstrip("/")

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | AppEnvironment) -> AppEnvironment:
        """Validate and parse app_env to AppEnvironment enum."""
        if isinstance(v, AppEnvironment):
            return v
        try:
            return AppEnvironment(v.lower())
        except ValueError:
            raise ValueError(
                f"app_env must be one of {[e.value for e in AppEnvironment]}, got '{v}'"
            )

    @field_validator("backend_api_url")
    @classmethod
    def validate_backend_api_url(cls, v: str) -> str:
        """Backend URL must be an absolute http(s) URL."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"backend_api_url must start with http:// or https://, got '{v}'")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """
        Validate production-specific settings.

        These checks prevent insecure configurations from being deployed to production.
        """
        if self.app_env == AppEnvironment.PROD:
            if not self.cookie_secure:
                raise ValueError("COOKIE_SECURE must be enabled in production")

            if not self.backend_api_url.startswith("https://"):
                raise ValueError("BACKEND_API_URL must use HTTPS in production")

            if not self.backend_jwt_secret or len(self.backend_jwt_secret) < 32:
                raise ValueError(
                    "BACKEND_JWT_SECRET must be set and at least 32 characters in production"
                )

        return self


settings = Settings()
