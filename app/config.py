"""
Application configuration using pydantic-settings.
Loads values from .env file in project root.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database settings (hosted Postgres)
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "membership_portal"
    db_user: str = "portal"
    db_password: str = ""
    # Full URL override, e.g. the pooled connection string of the hosted database
    db_url: str = ""

    # Application settings
    debug: bool = False
    log_level: str = "INFO"

    # Bulk import settings
    max_payload_bytes: int = 8 * 1024 * 1024
    import_chunk_size: int = 100
    import_lookup_batch_size: int = 100

    # Public lookup settings
    member_list_limit: int = 50000

    @property
    def database_url(self) -> str:
        """Generate SQLAlchemy database URL."""
        if self.db_url:
            return self.db_url
        return (
            f"postgresql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
