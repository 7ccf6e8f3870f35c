"""Application settings (pydantic-settings, ``.env`` aware).

LLM credentials are validated here so a production deployment without a
key for the selected provider refuses to start. The provider layer itself
reads them through ``ProviderConfig.from_env``.
"""

from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROVIDER_KEY_FIELDS = {
    "gemini": "google_api_key",
    "openai": "openai_api_key",
    "claude": "anthropic_api_key",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server; all interfaces so the container port can be published
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8000
    environment: str = "development"
    log_level: str = "INFO"

    # Browser origins allowed by CORS (credentials enabled, so no "*")
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Share links are {base_url}/profession/{slug}
    base_url: str = "https://hh-vibe.ru"

    llm_provider: str = "gemini"
    google_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # HeadHunter public API; area 113 is Russia
    hh_api_url: str = "https://api.hh.ru"
    hh_area: int = 113
    hh_user_agent: str = "HH-Vibe-Career-App/1.0"
    hh_timeout_seconds: float = 10.0

    # One JSON document per profession slug
    cards_dir: Path = Path("data/professions")

    # slowapi limit strings, "count/period"
    rate_limit_chat: str = "30/minute"
    rate_limit_generation: str = "5/minute"
    rate_limit_enabled: bool = True

    @field_validator("allowed_origins")
    @classmethod
    def reject_wildcard_origin(cls, origins: list[str]) -> list[str]:
        if "*" in origins:
            raise ValueError(
                "ALLOWED_ORIGINS must not contain '*': the API is served with credentials"
            )
        return origins

    @field_validator("hh_timeout_seconds")
    @classmethod
    def positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"HH_TIMEOUT_SECONDS must be positive, got {value}")
        return value

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @model_validator(mode="after")
    def require_provider_key_in_production(self) -> "Settings":
        """A production deployment must be able to reach its LLM provider."""
        if self.environment != "production":
            return self
        key_field = _PROVIDER_KEY_FIELDS.get(self.llm_provider)
        if key_field is None:
            raise ValueError(f"Unknown LLM_PROVIDER: {self.llm_provider}")
        if not getattr(self, key_field):
            raise ValueError(
                f"{key_field.upper()} must be set in production "
                f"(LLM_PROVIDER={self.llm_provider})"
            )
        return self


settings = Settings()
