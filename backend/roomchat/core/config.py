# backend/roomchat/core/config.py
import json
import logging
import os
from pathlib import Path
from typing import Annotated, Any, List, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .constants import DEFAULT_DEV_ORIGINS, MESSAGE_MAX_LENGTH


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


if os.getenv("CI"):
    _DEFAULT_SECRET_KEY: Any = SecretStr("ci-test-secret-key-not-for-production")
else:
    _DEFAULT_SECRET_KEY = ...


class Settings(BaseSettings):
    # Token signing, shared by the REST gateway and the push channel handshake
    secret_key: SecretStr = Field(
        _DEFAULT_SECRET_KEY,
        validation_alias=AliasChoices("secret_key", "jwt_secret"),
        description="Shared secret used to sign and verify bearer tokens",
    )
    algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        description="Lifetime of issued access tokens",
    )

    # Store
    database_url: str = Field(
        default="sqlite:///./roomchat.db",
        validation_alias=AliasChoices("database_url", "db_url"),
        description="SQLAlchemy URL of the credential and message store",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    # Origins allowed to open push-channel connections and make REST calls
    allowed_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_DEV_ORIGINS)
    )
    client_url: Optional[str] = Field(
        default=None,
        description="Production client origin, appended to allowed_origins",
    )

    message_max_length: int = Field(default=MESSAGE_MAX_LENGTH, ge=1)

    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")
    is_testing: bool = Field(default_factory=is_running_tests)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                return json.loads(stripped)
            return [item.strip() for item in stripped.split(",") if item.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def cors_origins(self) -> List[str]:
        """Allowed origins including the configured client URL."""
        origins = list(self.allowed_origins)
        if self.client_url and self.client_url not in origins:
            origins.append(self.client_url)
        return origins

    def is_origin_allowed(self, origin: Optional[str]) -> bool:
        # Requests without an Origin header (curl, native clients) are accepted
        if not origin:
            return True
        return origin in self.cors_origins


settings = Settings()
