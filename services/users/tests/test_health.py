def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["service"] == "user-service"


def test_readiness_has_no_downstream_checks(client):
    checks = client.get("/health/ready").json()["checks"]
    assert checks["database:connectivity"]["status"] == "pass"
    assert not [name for name in checks if name.startswith("downstream:")]
