import os
from functools import lru_cache

from pydantic import BaseModel


class Settings(BaseModel):
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql+asyncpg://shippxpress:shippxpress@db:5432/shippxpress",
    )
    DB_ECHO: bool = os.getenv("DB_ECHO", "false").lower() == "true"
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://redis:6379/0")
    GEOAPIFY_API_KEY: str | None = os.getenv("GEOAPIFY_API_KEY")
    GEOCODE_TIMEOUT_SEC: float = float(os.getenv("GEOCODE_TIMEOUT_SEC", "10"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Order lifecycle
    ORDER_NUMBER_PREFIX: str = os.getenv("ORDER_NUMBER_PREFIX", "ORD")
    BATCH_CUTOFF_TIME: str = os.getenv("BATCH_CUTOFF_TIME", "14:30")
    TRANSITION_MAX_RETRIES: int = int(os.getenv("TRANSITION_MAX_RETRIES", "3"))
    DEFAULT_PAGE_SIZE: int = int(os.getenv("DEFAULT_PAGE_SIZE", "50"))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
