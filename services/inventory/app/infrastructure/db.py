from services.inventory.app.core_settings import get_settings
from services.inventory.app.domain.models import Base
from shared.core.database import create_service_engine, create_session_factory

engine = create_service_engine(get_settings().database_url)
SessionLocal = create_session_factory(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_models():
    Base.metadata.create_all(bind=engine)
