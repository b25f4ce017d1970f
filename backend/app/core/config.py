from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application configuration settings."""

    # Application
    APP_NAME: str = "SEO Pulse Diagnostics"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    API_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # Upstream dashboard API (report storage + action execution)
    UPSTREAM_BASE_URL: str = "http://localhost:5000"
    UPSTREAM_TIMEOUT_SECONDS: float = 60.0
    DEFAULT_SITE_ID: str = ""

    # Viewer sessions
    MAX_SESSIONS: int = 200
    MAX_NOTIFICATIONS: int = 50

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
