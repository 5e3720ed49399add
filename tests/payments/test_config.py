import pytest
from pydantic import ValidationError as PydanticValidationError

from core.config import SatimSettings, Settings, load_settings
from domain.common.exceptions import ConfigurationError
from domain.payment.entity import Environment


CREDS = {
    "terminal_id": "E010900000",
    "username": "SAT2100000",
    "password": "satim120",
    "secret_key": "test-secret-key",
}


def test_environment_selects_base_url():
    assert SatimSettings(**CREDS).base_url == "https://test2.satim.dz/payment/rest"
    prod = SatimSettings(**CREDS, environment="production")
    assert prod.base_url == "https://satim.dz/payment/rest"
    assert prod.is_production and not prod.is_sandbox


def test_api_url_override_wins():
    s = SatimSettings(**CREDS, api_url="https://proxy.example/satim")
    assert s.base_url == "https://proxy.example/satim"


def test_missing_credentials_rejected():
    with pytest.raises(PydanticValidationError) as ei:
        SatimSettings(terminal_id="E010900000")
    assert "username" in str(ei.value) and "password" in str(ei.value)


def test_missing_secret_key_rejected():
    creds = {k: v for k, v in CREDS.items() if k != "secret_key"}
    with pytest.raises(PydanticValidationError) as ei:
        SatimSettings(**creds)
    assert "secret_key" in str(ei.value)


def test_production_requires_https_urls():
    with pytest.raises(PydanticValidationError):
        SatimSettings(**CREDS, environment=Environment.PRODUCTION, return_url="http://merchant.example/return")
    SatimSettings(**CREDS, environment=Environment.PRODUCTION, return_url="https://merchant.example/return")


def test_sandbox_accepts_plain_http_urls():
    s = SatimSettings(**CREDS, return_url="http://localhost:3000/return")
    assert s.return_url == "http://localhost:3000/return"


def test_invalid_url_rejected():
    with pytest.raises(PydanticValidationError):
        SatimSettings(**CREDS, fail_url="not a url")


def test_timeout_bounds_and_defaults():
    s = SatimSettings(**CREDS)
    assert s.api_timeout == 30000
    assert s.payment_session_timeout == 900000
    assert s.credentials == ("SAT2100000", "satim120")
    timeout = s.http_timeout()
    assert timeout.connect == 5.0 and timeout.read == 30.0
    with pytest.raises(PydanticValidationError):
        SatimSettings(**CREDS, api_timeout=500)
    with pytest.raises(PydanticValidationError):
        SatimSettings(**CREDS, payment_session_timeout=1000)


def test_settings_read_nested_environment(monkeypatch):
    monkeypatch.setenv("SATIM__ENVIRONMENT", "production")
    monkeypatch.setenv("SATIM__API_TIMEOUT", "15000")
    settings = Settings()
    assert settings.satim.environment is Environment.PRODUCTION
    assert settings.satim.api_timeout == 15000
    assert settings.satim.terminal_id == "E010900000"


def test_load_settings_wraps_validation_errors(monkeypatch):
    monkeypatch.setenv("SATIM__API_TIMEOUT", "10")
    with pytest.raises(ConfigurationError) as ei:
        load_settings()
    assert ei.value.message.startswith("Configuration validation failed")
    assert "satim120" not in str(ei.value.details)


def test_secrets_are_masked_in_repr():
    s = SatimSettings(**{**CREDS, "secret_key": "hmac-secret"})
    assert "satim120" not in repr(s)
    assert "hmac-secret" not in repr(s)
