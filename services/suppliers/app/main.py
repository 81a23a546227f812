"""
Supplier Microservice
Suppliers, product sourcing terms and purchase orders feeding the inventory service
"""

from services.suppliers.app.api.product_suppliers import router as product_suppliers_router
from services.suppliers.app.api.purchase_orders import router as purchase_orders_router
from services.suppliers.app.api.routes import router as suppliers_router
from services.suppliers.app.core_settings import get_settings
from services.suppliers.app.domain.models import Base
from services.suppliers.app.infrastructure.clients import breakers
from services.suppliers.app.infrastructure.db import engine, init_models
from shared.core import ServiceHealth
from shared.core.app_factory import create_service_app

SERVICE_NAME = "supplier-service"
SERVICE_DESCRIPTION = "Supplier and purchase order microservice"

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
    routers=[suppliers_router, product_suppliers_router, purchase_orders_router],
    init_models=init_models,
    health=health_service,
    log_level=settings.LOG_LEVEL,
)
