"""
Inventory Microservice
Stock levels, reservations, the movement ledger and low-stock alerts
"""

from services.inventory.app.api.alerts import router as alerts_router
from services.inventory.app.api.routes import movements_router
from services.inventory.app.api.routes import router as inventory_router
from services.inventory.app.core_settings import get_settings
from services.inventory.app.domain.models import Base
from services.inventory.app.infrastructure.clients import breakers
from services.inventory.app.infrastructure.db import engine, init_models
from shared.core import ServiceHealth
from shared.core.app_factory import create_service_app

SERVICE_NAME = "inventory-service"
SERVICE_DESCRIPTION = "Inventory management microservice"

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
    routers=[inventory_router, movements_router, alerts_router],
    init_models=init_models,
    health=health_service,
    log_level=settings.LOG_LEVEL,
)
