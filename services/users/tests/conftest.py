import pytest
from fastapi.testclient import TestClient

from services.users.app.domain.models import Base
from services.users.app.infrastructure.db import engine
from services.users.app.main import app
from shared.testing import data_of


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(client):
    def _make(**overrides):
        payload = {
            "username": "jdoe",
            "email": "jdoe@example.com",
            "password": "S3cure-pass!",
            "full_name": "Jane Doe",
            "role": "warehouse_staff",
        }
        payload.update(overrides)
        return data_of(client.post("/api/users", json=payload), 201)

    return _make
