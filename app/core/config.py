from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env at the project root: app/core/config.py -> app/core -> app -> root
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"

# An OpenAI key only counts as configured with this prefix (no stray whitespace etc.)
OPENAI_KEY_PREFIX = "sk-"


class Settings(BaseSettings):
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    # Per-call deadlines (seconds); PDF payloads are larger than chat prompts
    document_analysis_timeout: float = 120.0
    text_analysis_timeout: float = 45.0
    # Grounding text window for follow-up chat prompts
    chat_context_max_chars: int = 50000
    secret_key: str = "change-me-in-production"
    access_token_expire_minutes: int = 60 * 24 * 7
    database_url: str = "sqlite:///./labreports.db"
    # CORS: comma separated origins; in production e.g. https://example.com
    cors_origins: str = "*"
    upload_max_mb: int = 10
    environment: str = "development"
    log_level: str = "INFO"
    # "local": tokens issued by /auth/login; "hosted": backend-as-a-service auth
    auth_provider: str = "local"
    backend_url: str = ""
    backend_anon_key: str = ""

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("openai_api_key", "backend_url", "backend_anon_key", mode="before")
    @classmethod
    def strip_secret(cls, v: str | None) -> str:
        """Trims whitespace left over from copy/paste."""
        return (v or "").strip()

    @field_validator("auth_provider", mode="before")
    @classmethod
    def normalize_auth_provider(cls, v: str | None) -> str:
        return (v or "local").strip().lower()


settings = Settings()
