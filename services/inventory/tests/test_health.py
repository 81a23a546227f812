from shared.testing import data_of


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["service"] == "inventory-service"


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "pass"


def test_startup_probe_sees_schema(client):
    resp = client.get("/health/startup")
    assert resp.status_code == 200
    checks = resp.json()["checks"]
    assert checks["database:schema"]["status"] == "pass"


def test_readiness_reports_database_and_circuit(client):
    checks = client.get("/health/ready").json()["checks"]
    assert checks["database:connectivity"]["status"] == "pass"
    assert checks["downstream:product-catalog-service"]["observedValue"] == "closed"


def test_unknown_route_uses_envelope(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.json()["success"] is False
    assert data_of(client.get("/api/inventory")) == []
