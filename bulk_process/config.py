"""Centralised settings object – importable from anywhere."""
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Auto-load .env from repo root
load_dotenv(Path(__file__).resolve().parents[1] / ".env")

class _Settings(BaseSettings):
    # === Database ===================================================
    DATABASE_URL: str = ""
    ALLOW_SQLITE_FALLBACK: bool = True
    SQLITE_PATH: str = "data/database/bulk_process.db"  # Relative to repo root unless absolute

    # === Bulk processing ============================================
    BULK_CHUNK_LIMIT: int = Field(default=1000, ge=1)

    # === Derived/Optional ============================================
    DEBUG: bool = False

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    def get(self, key: str, default=None):
        """Get configuration value by key with optional default."""
        return getattr(self, key, default)

@lru_cache
def settings() -> _Settings:
    return _Settings()


def get_database_url() -> str:
    """
    Get database URL with automatic fallback to SQLite if no server database is configured.
    """
    config = settings()

    if config.DATABASE_URL:
        return config.DATABASE_URL

    # Fallback to SQLite if enabled
    if config.ALLOW_SQLITE_FALLBACK:
        db_path = Path(config.SQLITE_PATH)
        if not db_path.is_absolute():
            db_path = Path(__file__).resolve().parents[1] / db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{db_path}"

    raise ValueError("No database configuration found. Set DATABASE_URL or enable ALLOW_SQLITE_FALLBACK.")
