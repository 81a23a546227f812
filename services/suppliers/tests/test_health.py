def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["service"] == "supplier-service"


def test_startup_reports_tables(client):
    resp = client.get("/health/startup")
    assert resp.status_code == 200
    assert resp.json()["checks"]["database:schema"]["status"] == "pass"


def test_readiness_lists_downstream_breakers(client):
    checks = client.get("/health/ready").json()["checks"]
    assert "downstream:inventory-service" in checks
    assert "downstream:product-catalog-service" in checks
