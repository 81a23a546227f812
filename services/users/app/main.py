"""
User Microservice
Staff and supplier accounts
"""

from services.users.app.api.routes import router as users_router
from services.users.app.core_settings import get_settings
from services.users.app.domain.models import Base
from services.users.app.infrastructure.db import engine, init_models
from shared.core import ServiceHealth
from shared.core.app_factory import create_service_app

SERVICE_NAME = "user-service"
SERVICE_DESCRIPTION = "User management microservice"

settings = get_settings()

health_service = ServiceHealth(
    SERVICE_NAME,
    settings.SERVICE_VERSION,
    engine=engine,
    tables=Base.metadata.tables.keys(),
)

app = create_service_app(
    service_name=SERVICE_NAME,
    description=SERVICE_DESCRIPTION,
    version=settings.SERVICE_VERSION,
    routers=[users_router],
    init_models=init_models,
    health=health_service,
    log_level=settings.LOG_LEVEL,
)
