from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings

from shared.core.database import postgres_url
from shared.core.downstream import FailurePolicy


class Settings(BaseSettings):
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "product_catalog_db"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    DATABASE_URL: Optional[str] = None

    SERVICE_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    INVENTORY_SERVICE_URL: str = "http://inventory-service:3003/api"
    DOWNSTREAM_TIMEOUT_SECONDS: float = 5.0
    CIRCUIT_FAILURE_THRESHOLD: int = 5
    CIRCUIT_RESET_SECONDS: float = 30.0

    # New products get an empty inventory row; failure never blocks creation
    INVENTORY_CREATE_POLICY: FailurePolicy = FailurePolicy.FAIL_OPEN
    DEFAULT_WAREHOUSE_LOCATION: str = "Warehouse-A"
    DEFAULT_REORDER_LEVEL: int = 100
    DEFAULT_MAX_STOCK_LEVEL: int = 1000

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
