"""Application configuration loaded from environment variables via pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables and/or a .env file in the
    working directory.  Leaving ``GITHUB_TOKEN`` unset switches the
    dashboard into sample mode.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # --- Database ---
    DATABASE_URL: str = "sqlite+aiosqlite:///./activity.db"

    # --- GitHub ---
    GITHUB_TOKEN: str | None = None
    GITHUB_USERNAME: str = "kristofer"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # --- Windows / retention ---
    ACTIVITY_WINDOW_MONTHS: int = 6
    PR_COMMENT_RETENTION_DAYS: int = 180
    ACTIVITY_RETENTION_DAYS: int | None = None

    # --- Server ---
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:8080"]

    @property
    def sample_mode(self) -> bool:
        """True when no GitHub credential is configured."""
        return not self.GITHUB_TOKEN


settings = Settings()
