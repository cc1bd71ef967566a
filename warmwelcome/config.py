from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from warmwelcome.errors import ConfigurationError

_project_root = Path(__file__).resolve().parents[1]
load_dotenv(_project_root / ".env", override=False)

logger = logging.getLogger("config")

_MIN_JWT_SECRET_LENGTH = 16
MIN_ENCRYPTION_KEY_LENGTH = 32
_SHOPIFY_OAUTH_KEYS = ("SHOPIFY_API_KEY", "SHOPIFY_API_SECRET", "SHOPIFY_REDIRECT_URI")


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"
    DATABASE_URL: str = "sqlite:///./warmwelcome.db"

    JWT_SECRET: str | None = None
    ENCRYPTION_KEY: str | None = None

    SHOPIFY_API_KEY: str | None = None
    SHOPIFY_API_SECRET: str | None = None
    SHOPIFY_REDIRECT_URI: str | None = None
    SHOPIFY_SCOPES: str = ""
    SHOPIFY_STATE_SECRET: str | None = None
    SHOPIFY_ADMIN_API_VERSION: str = "2024-10"
    SHOPIFY_REQUEST_TIMEOUT_SECONDS: float = 20.0
    SHOPIFY_CUSTOMER_FETCH_LIMIT: int = 10

    FRONTEND_URL: str | None = None
    BACKEND_CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_BASE_URL: str | None = None
    OPENAI_REQUEST_TIMEOUT_SECONDS: float = 60.0

    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASS: str | None = None
    SMTP_SECURE: bool | None = None
    EMAIL_FROM: str = "WarmWelcome.ai <no-reply@warmwelcome.ai>"

    @field_validator("SHOPIFY_SCOPES")
    @classmethod
    def normalize_scopes(cls, value: str) -> str:
        return ",".join(scope.strip() for scope in value.split(",") if scope.strip())

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def state_secret(self) -> str | None:
        return _clean(self.SHOPIFY_STATE_SECRET) or _clean(self.JWT_SECRET)

    @property
    def shopify_oauth_configured(self) -> bool:
        return all(_clean(getattr(self, key)) for key in _SHOPIFY_OAUTH_KEYS)

    @property
    def openai_configured(self) -> bool:
        return bool(_clean(self.OPENAI_API_KEY))

    @property
    def smtp_configured(self) -> bool:
        return bool(_clean(self.SMTP_HOST))

    @property
    def smtp_use_tls(self) -> bool:
        if self.SMTP_SECURE is not None:
            return self.SMTP_SECURE
        return self.SMTP_PORT == 465

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def validate_environment(config: Settings) -> list[str]:
    """Fail fast on missing required secrets; return warnings for optional features."""
    errors: list[str] = []
    warnings: list[str] = []

    jwt_secret = _clean(config.JWT_SECRET)
    if not jwt_secret or len(jwt_secret) < _MIN_JWT_SECRET_LENGTH:
        errors.append(f"JWT_SECRET must be set and at least {_MIN_JWT_SECRET_LENGTH} characters long")

    encryption_key = _clean(config.ENCRYPTION_KEY)
    if not encryption_key or len(encryption_key) < MIN_ENCRYPTION_KEY_LENGTH:
        errors.append(f"ENCRYPTION_KEY must be set and at least {MIN_ENCRYPTION_KEY_LENGTH} characters long")

    if any(_clean(getattr(config, key)) for key in _SHOPIFY_OAUTH_KEYS):
        missing = [key for key in _SHOPIFY_OAUTH_KEYS if not _clean(getattr(config, key))]
        if missing:
            warnings.append(
                f"Partial Shopify configuration detected. Missing: {', '.join(missing)}. "
                "Shopify OAuth will fail until all values are set."
            )
        if not _clean(config.SHOPIFY_STATE_SECRET):
            warnings.append("SHOPIFY_STATE_SECRET is not set. Falling back to JWT_SECRET for Shopify state tokens.")

    if not config.openai_configured:
        warnings.append(
            "OPENAI_API_KEY is not set. AI email generation and previews will be disabled until it is configured."
        )
    if not config.smtp_configured:
        warnings.append("SMTP_HOST is not set. Outgoing email delivery is disabled.")

    for warning in warnings:
        logger.warning(warning)

    if errors:
        detail = "\n".join(f"- {error}" for error in errors)
        raise ConfigurationError(message=f"Environment validation failed:\n{detail}")
    return warnings


settings = Settings()
