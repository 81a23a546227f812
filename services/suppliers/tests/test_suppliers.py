from shared.testing import assert_error, data_of


def test_create_supplier(client, make_supplier):
    supplier = make_supplier()
    assert supplier["id"] > 0
    assert supplier["name"] == "Test Supplier Inc."
    assert supplier["is_active"] is True
    assert float(supplier["rating"]) == 4.5

    fetched = data_of(client.get(f"/api/suppliers/{supplier['id']}"))
    assert fetched["email"] == supplier["email"]


def test_duplicate_email_conflicts(client, make_supplier):
    supplier = make_supplier()
    resp = client.post("/api/suppliers", json={"name": "Copy", "email": supplier["email"]})
    assert_error(resp, 409, "already exists")


def test_update_to_taken_email_conflicts(client, make_supplier):
    first = make_supplier()
    second = make_supplier()
    resp = client.put(f"/api/suppliers/{second['id']}", json={"email": first["email"]})
    assert_error(resp, 409)

    updated = data_of(client.put(f"/api/suppliers/{second['id']}", json={"phone": "+1-555-0199"}))
    assert updated["phone"] == "+1-555-0199"


def test_list_filters_by_country(client, make_supplier):
    make_supplier(country="USA")
    make_supplier(name="Acme GmbH", country="Germany")

    assert len(data_of(client.get("/api/suppliers"))) == 2
    german = data_of(client.get("/api/suppliers", params={"country": "germany"}))
    assert [s["name"] for s in german] == ["Acme GmbH"]


def test_soft_delete_hides_from_list(client, make_supplier):
    supplier = make_supplier()
    data_of(client.delete(f"/api/suppliers/{supplier['id']}"))

    assert data_of(client.get("/api/suppliers")) == []
    inactive = data_of(client.get("/api/suppliers", params={"is_active": False}))
    assert [s["id"] for s in inactive] == [supplier["id"]]
    assert data_of(client.get(f"/api/suppliers/{supplier['id']}"))["is_active"] is False


def test_missing_supplier(client):
    assert_error(client.get("/api/suppliers/999"), 404, "Supplier not found")
    assert_error(client.delete("/api/suppliers/999"), 404)


def test_invalid_rating_rejected(client):
    resp = client.post("/api/suppliers", json={"name": "Bad", "email": "bad@example.com", "rating": 7})
    assert_error(resp, 400, "Invalid request")


def test_update_rejects_null_required_fields(client, make_supplier):
    supplier = make_supplier()
    assert_error(client.put(f"/api/suppliers/{supplier['id']}", json={"email": None}), 400, "email cannot be null")
    assert_error(client.put(f"/api/suppliers/{supplier['id']}", json={"name": None}), 400, "name cannot be null")
    assert data_of(client.get(f"/api/suppliers/{supplier['id']}"))["email"] == supplier["email"]
