"""tenantchat configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "api_key": "insecure-gateway-key-change-me",
    "super_admin_key": "insecure-super-admin-key-change-me",
}


class TenantChatSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TENANTCHAT_")

    environment: str = "development"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/tenantchat.db"

    # API
    api_title: str = "tenantchat"
    api_version: str = "0.1.0"
    # Presented by the auth gateway on every request asserting a staff identity.
    api_key: str = "insecure-gateway-key-change-me"
    super_admin_key: str = "insecure-super-admin-key-change-me"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # External identities
    phone_digits: int = 10

    # Pagination
    default_page_size: int = 50
    max_page_size: int = 100

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"TENANTCHAT_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default keys - set TENANTCHAT_API_KEY and "
                "TENANTCHAT_SUPER_ADMIN_KEY for production",
                UserWarning,
                stacklevel=2,
            )

    def clamp_page_size(self, limit: int | None) -> int:
        if limit is None:
            return self.default_page_size
        return max(1, min(limit, self.max_page_size))


@lru_cache
def get_settings() -> TenantChatSettings:
    settings = TenantChatSettings()
    settings.validate_for_production()
    return settings
