"""
Product Catalog Microservice
Products, categories and product lifecycle
"""

from services.products.app.api.categories import router as categories_router
from services.products.app.api.routes import router as products_router
from services.products.app.core_settings import get_settings
from services.products.app.domain.models import Base
from services.products.app.infrastructure.clients import breakers
from services.products.app.infrastructure.db import engine, init_models
from shared.core import ServiceHealth
from shared.core.app_factory import create_service_app

SERVICE_NAME = "product-catalog-service"
SERVICE_DESCRIPTION = "Product catalog microservice"

settings = get_settings()

health_service = ServiceHealth(
    SERVICE_NAME,
    settings.SERVICE_VERSION,
    engine=engine,
    tables=Base.metadata.tables.keys(),
    breakers=breakers,
)

app = create_service_app(
    service_name=SERVICE_NAME,
    description=SERVICE_DESCRIPTION,
    version=settings.SERVICE_VERSION,
    routers=[products_router, categories_router],
    init_models=init_models,
    health=health_service,
    log_level=settings.LOG_LEVEL,
)
