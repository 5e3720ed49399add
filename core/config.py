"""
配置文件 - 项目配置管理

Gateway settings are nested under ``satim`` and read from the environment
with ``__`` as delimiter, e.g. ``SATIM__TERMINAL_ID`` or ``SATIM__API_TIMEOUT``.
"""
from functools import lru_cache
from typing import Optional
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from domain.common.exceptions import ConfigurationError
from domain.payment.entity import Environment
from shared.codes.payment_codes import SATIM_URLS


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


class PaymentTimeouts(BaseModel):
    """Per-phase httpx timeouts in seconds; ``total`` falls back to ``api_timeout``."""
    connect: float = 5.0
    read: Optional[float] = None
    write: Optional[float] = None
    total: Optional[float] = None


class SatimSettings(BaseModel):
    environment: Environment = Environment.SANDBOX

    # Credentials issued by SATIM
    terminal_id: str = ""
    username: str = ""
    password: SecretStr = SecretStr("")
    # Shared secret for callback HMAC verification
    secret_key: SecretStr = SecretStr("")

    api_url: Optional[str] = None
    return_url: Optional[str] = None
    fail_url: Optional[str] = None

    api_timeout: int = Field(default=30000, ge=1000, description="Request timeout (ms)")
    payment_session_timeout: int = Field(default=900000, ge=60000, description="Payment page lifetime (ms)")
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)

    @field_validator("api_url", "return_url", "fail_url")
    @classmethod
    def _validate_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if not _is_http_url(v):
            raise ValueError(f"invalid URL: {v}")
        return v

    @model_validator(mode="after")
    def _validate_required(self):
        missing = [
            name
            for name, value in (
                ("terminal_id", self.terminal_id),
                ("username", self.username),
                ("password", self.password.get_secret_value()),
                ("secret_key", self.secret_key.get_secret_value()),
            )
            if not value
        ]
        if missing:
            raise ValueError(f"missing required SATIM settings: {', '.join(missing)}")
        if self.environment is Environment.PRODUCTION:
            for name in ("return_url", "fail_url"):
                url = getattr(self, name)
                if url and not url.lower().startswith("https://"):
                    raise ValueError(f"{name} must use HTTPS in production: {url}")
        return self

    @property
    def base_url(self) -> str:
        return self.api_url or SATIM_URLS[self.environment.value]

    @property
    def is_production(self) -> bool:
        return self.environment is Environment.PRODUCTION

    @property
    def is_sandbox(self) -> bool:
        return self.environment is Environment.SANDBOX

    @property
    def credentials(self) -> tuple[str, str]:
        return self.username, self.password.get_secret_value()

    def http_timeout(self) -> httpx.Timeout:
        total = self.timeouts.total or self.api_timeout / 1000
        return httpx.Timeout(
            timeout=total,
            connect=min(self.timeouts.connect, total),
            read=self.timeouts.read or total,
            write=self.timeouts.write or total,
        )


class Settings(BaseSettings):
    """项目配置"""

    PROJECT_NAME: str = "SATIM Payment Adapter"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    satim: SatimSettings

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        level = (v or "INFO").upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unsupported log level: {v}")
        return level


def load_settings(**overrides) -> Settings:
    """Build settings from env/.env; invalid setup surfaces as ConfigurationError."""
    try:
        return Settings(**overrides)
    except PydanticValidationError as exc:
        reasons = [
            f"{'.'.join(str(p) for p in err.get('loc', ())) or 'settings'}: {err.get('msg')}"
            for err in exc.errors()
        ]
        raise ConfigurationError(
            f"Configuration validation failed: {', '.join(reasons)}",
            details={"errors": reasons},
        ) from exc


@lru_cache
def get_settings() -> Settings:
    return load_settings()
