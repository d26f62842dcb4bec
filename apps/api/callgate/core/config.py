"""Application configuration for the call token service."""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    agora_app_id: str = Field(default="")
    agora_app_certificate: SecretStr = Field(default=SecretStr(""))

    jwt_secret: SecretStr = Field(default=SecretStr("dev-secret"))
    jwt_algorithm: str = Field(default="HS256")

    rtc_token_ttl_seconds: int = Field(default=3600, ge=0)
    rtc_token_max_ttl_seconds: int = Field(default=86400, ge=1)
    rtc_require_credentials: bool = Field(default=False)
    rtc_inspect_enabled: bool = Field(default=False)

    database_url: str = Field(default="sqlite+aiosqlite:///./callgate.db")
    database_ssl_required: bool = Field(default=False)

    expo_push_url: str = Field(default="https://exp.host/--/api/v2/push/send")
    push_timeout_seconds: float = Field(default=5.0, gt=0)

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        """Allow comma-separated env values for CORS origins."""

        if isinstance(value, str) and not value.strip().startswith("["):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def database_async_url(self) -> str:
        """Return the database URL with an async driver."""

        url = self.database_url
        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://"):]
        if url.startswith("postgresql://"):
            return "postgresql+asyncpg://" + url[len("postgresql://"):]
        return url

    @property
    def rtc_configured(self) -> bool:
        return bool(self.agora_app_id and self.agora_app_certificate.get_secret_value())


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


settings = get_settings()
