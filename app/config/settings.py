# app/config/settings.py

from pydantic_settings import BaseSettings
from pydantic import ConfigDict


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=True
    )

    # PostgreSQL Configuration
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "sportlink_db"

    # Application Configuration
    APP_NAME: str = "SportLink Backend"
    DEBUG: bool = True

    # JWT Authentication Configuration
    SECRET_KEY: str = "CHANGE-THIS-SECRET-KEY-IN-PRODUCTION-USE-ENV-FILE"  # Must be changed in .env file!
    JWT_LIFETIME_SECONDS: int = 3600 * 24 * 7  # 7 days

    # Lobby Configuration
    MAX_PLAYERS_LIMIT: int = 100

    # Client Configuration
    API_BASE_URL: str = "http://localhost:3000/v1"
    HTTP_TIMEOUT_SECONDS: float = 10.0
    CACHE_DATABASE_URL: str = "sqlite+aiosqlite:///./sportlink_cache.db"

    # Retry policy for transient client failures
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_INITIAL_DELAY_SECONDS: float = 1.0
    RETRY_MAX_DELAY_SECONDS: float = 10.0
    RETRY_MULTIPLIER: float = 2.0

    @property
    def DATABASE_URL(self) -> str:
        """Construct PostgreSQL connection URL for SQLAlchemy"""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"


settings = Settings()
