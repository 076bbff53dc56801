from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ─── App ──────────────────────────────
    APP_NAME: str = "celestial-self"
    LOG_LEVEL: str = "INFO"
    REQUEST_LOGGING: bool = False
    CORS_ORIGINS: List[str] = ["*"]
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # ─── Chart engine ─────────────────────
    EPHEMERIS_PATH: Optional[str] = None
    DEFAULT_HOUSE_SYSTEM: str = "equal"
    HOUSE_ASSIGNMENT: str = "sector"  # sector | cusps

    # ─── Remote ephemeris (optional) ──────
    EPHEMERIS_API_URL: Optional[str] = None
    EPHEMERIS_API_KEY: Optional[str] = None
    REMOTE_TIMEOUT: float = 10.0

    model_config = SettingsConfigDict(
        env_prefix="CELESTIAL_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
