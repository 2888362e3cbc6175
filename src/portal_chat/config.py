from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300

    REDIS_URL: str = "redis://localhost:6379/0"

    # Empty secret: WS clients identify with ?user_id= and no token is issued.
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_TTL_SECONDS: int = 7200

    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:3001"]

    WS_HEARTBEAT_SECONDS: int = 30
    UNREAD_RECONCILE_SECONDS: float = 60.0

    RATE_LIMIT_MAX: int = 60
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_PREFIX: str = "portal-chat:rl"

    SEED_ADMIN: bool = True
    ADMIN_USER_ID: str = "admin-user-id"
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_NAME: str = "Admin"

    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "info"

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.POSTGRES_DB}"
        )

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
