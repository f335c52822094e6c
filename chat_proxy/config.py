"""Application settings loaded from environment variables / .env file."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Pre-built frontend lives next to the package (frontend/dist or frontend/build)
_FRONTEND_DIR = Path(__file__).resolve().parent.parent / "frontend"

REQUIRED_ENV_VARS = (
    "AZURE_OPENAI_ENDPOINT",
    "AZURE_OPENAI_API_VERSION",
    "AZURE_OPENAI_DEPLOYMENT",
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    azure_openai_endpoint: str = Field(..., min_length=1)
    azure_openai_api_key: str | None = None
    azure_openai_api_version: str = Field(..., min_length=1)
    azure_openai_deployment: str = Field(..., min_length=1)
    azure_openai_use_managed_identity: bool = False
    azure_openai_timeout: float | None = None

    host: str = "0.0.0.0"
    port: int = 8080
    max_body_bytes: int = 1024 * 1024
    cors_origins: list[str] = ["*"]
    frontend_dir: Path = _FRONTEND_DIR
    log_level: str = "INFO"

    @field_validator("azure_openai_endpoint")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("azure_openai_api_key")
    @classmethod
    def _empty_key_is_unset(cls, value: str | None) -> str | None:
        # "" and unset both mean: send no api-key header
        return value or None


@lru_cache
def get_settings() -> Settings:
    return Settings()
