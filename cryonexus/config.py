"""Environment configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings

# Next.js dev server and local testing
DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8000",
]


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    anthropic_api_key: str

    # LLM settings
    router_model: str = "claude-sonnet-4-5-20250929"
    specialist_model: str = "claude-sonnet-4-5-20250929"
    synthesis_model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 2000

    # Pipeline timeouts (seconds)
    router_timeout_seconds: float = 30.0
    agent_timeout_seconds: float = 20.0
    synthesis_timeout_seconds: float = 60.0
    context_timeout_seconds: float = 5.0

    # News context (GDELT DOC API)
    gdelt_api_base_url: str = "https://api.gdeltproject.org/api/v2"
    context_max_records: int = 5

    # Reference data and golden-path recordings
    country_data_path: Path = Path("data/country_data.json")
    recordings_dir: Path = Path("data/recordings")
    use_recordings: bool = False

    allowed_origins: list[str] = DEFAULT_ALLOWED_ORIGINS

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def validate_timeouts_positive(self) -> "Settings":
        for field_name in (
            "router_timeout_seconds",
            "agent_timeout_seconds",
            "synthesis_timeout_seconds",
            "context_timeout_seconds",
        ):
            value = getattr(self, field_name)
            if value <= 0:
                raise ValueError(f"{field_name} must be positive, got {value}")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
