"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """MootCourt application settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        database_url: Async SQLAlchemy connection string.
        videos_dir: Root directory for uploaded practice videos.
        jwt_secret_key: Secret used to sign bearer tokens.
        tool_timeout_seconds: Wall-clock limit for tool script execution.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Auth ---
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 120
    reset_token_ttl_hours: int = 24
    # Echo password-reset tokens in the API response (no mail delivery in dev)
    expose_reset_tokens: bool = False

    # --- Video storage ---
    videos_dir: str = "data/videos"
    upload_max_bytes: int = 500 * 1024 * 1024

    # --- Tools ---
    tool_timeout_seconds: float = 10.0
    python_executable: str = "python3"

    # --- AI analysis ---
    ai_analysis_delay_seconds: float = 2.0
    ai_request_timeout_seconds: float = 60.0

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI server
    app_port: int = 8000
    log_level: str = "INFO"  # Python logging level
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # --- Storage ---
    database_url: str = "sqlite+aiosqlite:///data/mootcourt.db"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
