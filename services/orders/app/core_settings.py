from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

from shared.core.database import postgres_url
from shared.core.downstream import FailurePolicy


class Settings(BaseSettings):
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "order_db"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    DATABASE_URL: Optional[str] = None

    SERVICE_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    INVENTORY_SERVICE_URL: str = "http://inventory-service:3003/api"
    PRODUCT_CATALOG_SERVICE_URL: str = "http://product-catalog-service:3002/api"
    DOWNSTREAM_TIMEOUT_SECONDS: float = 5.0
    CIRCUIT_FAILURE_THRESHOLD: int = 5
    CIRCUIT_RESET_SECONDS: float = 30.0
    PRODUCT_CACHE_TTL_SECONDS: float = 60

    # Missing item sku / price / name are filled from the catalog when it answers
    PRODUCT_SNAPSHOT_POLICY: FailurePolicy = FailurePolicy.FAIL_OPEN

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return postgres_url(
            self.POSTGRES_USER,
            self.POSTGRES_PASSWORD,
            self.POSTGRES_HOST,
            self.POSTGRES_PORT,
            self.POSTGRES_DB,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
