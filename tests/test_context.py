from __future__ import annotations

import pytest

from warmwelcome.config import Settings, validate_environment
from warmwelcome.context import AppContext
from warmwelcome.errors import ConfigurationError, FeatureDisabledError


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_completion_client_is_memoized_until_reset():
    context = AppContext(_settings(OPENAI_API_KEY="sk-test", OPENAI_BASE_URL="http://localhost:9999/v1"))

    first = context.completion_client()
    assert context.completion_client() is first

    context.reset()
    assert context.completion_client() is not first


def test_completion_client_disabled_without_api_key():
    context = AppContext(_settings(OPENAI_API_KEY=None))

    with pytest.raises(FeatureDisabledError) as exc_info:
        context.completion_client()
    assert exc_info.value.status_code == 503


def test_mailer_disabled_without_smtp_host():
    context = AppContext(_settings(SMTP_HOST=None))

    assert context.mailer() is None


def test_mailer_is_memoized_and_uses_implicit_tls_on_465():
    context = AppContext(_settings(SMTP_HOST="smtp.example.com", SMTP_PORT=465, SMTP_USER="u", SMTP_PASS="p"))

    mailer = context.mailer()

    assert mailer is context.mailer()
    assert mailer.host == "smtp.example.com"
    assert mailer.use_tls is True
    context.reset()
    assert context.mailer() is not mailer


def test_state_secret_falls_back_to_jwt_secret():
    assert _settings(SHOPIFY_STATE_SECRET=None, JWT_SECRET="jwt-secret-value-123").state_secret == "jwt-secret-value-123"
    assert _settings(SHOPIFY_STATE_SECRET="state", JWT_SECRET="jwt-secret-value-123").state_secret == "state"


def test_scopes_are_normalized():
    assert _settings(SHOPIFY_SCOPES=" read_customers , ,read_orders").SHOPIFY_SCOPES == "read_customers,read_orders"


def test_validate_environment_fails_fast_on_missing_secrets():
    with pytest.raises(ConfigurationError) as exc_info:
        validate_environment(_settings(JWT_SECRET=None, ENCRYPTION_KEY="short"))

    message = str(exc_info.value)
    assert "JWT_SECRET" in message
    assert "ENCRYPTION_KEY" in message


def test_validate_environment_warns_for_optional_features():
    warnings = validate_environment(
        _settings(
            JWT_SECRET="jwt-secret-value-123",
            ENCRYPTION_KEY="k" * 32,
            SHOPIFY_API_KEY="key",
            SHOPIFY_API_SECRET=None,
            SHOPIFY_REDIRECT_URI=None,
            SHOPIFY_STATE_SECRET=None,
            OPENAI_API_KEY=None,
            SMTP_HOST=None,
        )
    )

    assert any("Partial Shopify configuration" in warning for warning in warnings)
    assert any("SHOPIFY_STATE_SECRET" in warning for warning in warnings)
    assert any("OPENAI_API_KEY" in warning for warning in warnings)
