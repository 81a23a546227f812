"""
Order Microservice
Orders, line items and stock reservation through the inventory service
"""

from services.orders.app.api.routes import router as orders_router
from services.orders.app.core_settings import get_settings
from services.orders.app.domain.models import Base
from services.orders.app.infrastructure.clients import breakers
from services.orders.app.infrastructure.db import engine, init_models
from shared.core import ServiceHealth
from shared.core.app_factory import create_service_app

SERVICE_NAME = "order-service"
SERVICE_DESCRIPTION = "Order management microservice"

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
    routers=[orders_router],
    init_models=init_models,
    health=health_service,
    log_level=settings.LOG_LEVEL,
)
