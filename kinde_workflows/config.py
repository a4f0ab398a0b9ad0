"""Workflow configuration loaded from environment variables."""

from __future__ import annotations

import json
import logging
from typing import Annotated

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_PLAN_CODE = "standard-organization-plan"
DEFAULT_FEATURE_CODE = "user"
DEFAULT_BANNED_USERNAMES: tuple[str, ...] = ("admin", "root", "test")


class ConfigurationError(Exception):
    """Raised when a workflow needs a setting that was not provided."""


class Settings(BaseSettings):
    """Workflow settings loaded from environment variables with KINDE_WF_ prefix.

    The M2M credentials keep the variable names the workflow runtime
    exposes (``KINDE_WF_M2M_CLIENT_ID`` / ``KINDE_WF_M2M_CLIENT_SECRET``).
    """

    model_config = SettingsConfigDict(
        env_prefix="KINDE_WF_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    debug: bool = False

    # Management API
    domain: str | None = None
    m2m_client_id: str | None = None
    m2m_client_secret: SecretStr | None = None
    http_timeout: float = 10.0

    # Seat metering
    target_plan_code: str = DEFAULT_PLAN_CODE
    billing_feature_code: str = DEFAULT_FEATURE_CODE

    # Username validation: comma-separated (admin,root) or a JSON array
    banned_usernames: Annotated[list[str], NoDecode] = list(DEFAULT_BANNED_USERNAMES)

    # Logging
    structured_logging: bool = False

    @field_validator("m2m_client_secret", mode="before")
    @classmethod
    def mask_secret_in_repr(cls, v: str | None) -> SecretStr | None:
        if v is None:
            return None
        if isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("domain", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.rstrip("/")

    @field_validator("banned_usernames", mode="before")
    @classmethod
    def split_banned_usernames(cls, v: object) -> object:
        if not isinstance(v, str):
            return v
        if v.lstrip().startswith("["):
            return json.loads(v)
        return [name.strip() for name in v.split(",") if name.strip()]

    def is_management_api_configured(self) -> bool:
        return self.domain is not None and self.m2m_client_id is not None and self.m2m_client_secret is not None

    def require_management_api(self) -> None:
        """Raise :class:`ConfigurationError` if M2M credentials are missing."""
        missing = [
            name
            for name, value in (
                ("KINDE_WF_DOMAIN", self.domain),
                ("KINDE_WF_M2M_CLIENT_ID", self.m2m_client_id),
                ("KINDE_WF_M2M_CLIENT_SECRET", self.m2m_client_secret),
            )
            if value is None
        ]
        if missing:
            raise ConfigurationError(f"Management API is not configured; missing: {', '.join(missing)}")


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info("Loaded workflow settings (management_api=%s)", settings.is_management_api_configured())

    return settings
