from shared.testing import assert_error, data_of


def _create(client, **payload):
    return data_of(client.post("/api/categories", json=payload), 201)


def test_create_and_get_category(client):
    category = _create(client, name="Electronics", description="Electronic products")
    fetched = data_of(client.get(f"/api/categories/{category['id']}"))
    assert fetched["name"] == "Electronics"
    assert fetched["parent_id"] is None
    assert fetched["is_active"] is True


def test_parent_must_exist(client):
    resp = client.post("/api/categories", json={"name": "Phones", "parent_id": 999})
    assert_error(resp, 400, "Parent category not found")


def test_duplicate_name_conflicts(client):
    _create(client, name="Electronics")
    assert_error(client.post("/api/categories", json={"name": "Electronics"}), 409)


def test_root_only_filter(client):
    root = _create(client, name="Electronics")
    _create(client, name="Phones", parent_id=root["id"])

    assert len(data_of(client.get("/api/categories"))) == 2
    roots = data_of(client.get("/api/categories", params={"root_only": True}))
    assert [c["name"] for c in roots] == ["Electronics"]


def test_update_category(client):
    root = _create(client, name="Electronics")
    child = _create(client, name="Phones")
    updated = data_of(client.put(f"/api/categories/{child['id']}", json={"parent_id": root["id"]}))
    assert updated["parent_id"] == root["id"]
    assert_error(client.put(f"/api/categories/{child['id']}", json={"parent_id": child["id"]}), 400)


def test_soft_delete_category(client):
    category = _create(client, name="Seasonal")
    data_of(client.delete(f"/api/categories/{category['id']}"))
    assert data_of(client.get("/api/categories")) == []
    assert data_of(client.get(f"/api/categories/{category['id']}"))["is_active"] is False
    assert_error(client.get("/api/categories/404"), 404, "Category not found")


def test_product_in_category(client):
    category = _create(client, name="Apparel")
    resp = client.post("/api/products", json={"sku": "TEE-1", "name": "Tee", "category_id": category["id"]})
    product = data_of(resp, 201)
    listed = data_of(client.get("/api/products", params={"category_id": category["id"]}))
    assert [p["id"] for p in listed] == [product["id"]]


def test_update_rejects_null_name(client):
    category = _create(client, name="Garden")
    assert_error(client.put(f"/api/categories/{category['id']}", json={"name": None}), 400, "name cannot be null")
    assert_error(client.put(f"/api/categories/{category['id']}", json={"is_active": None}), 400)
    assert data_of(client.get(f"/api/categories/{category['id']}"))["name"] == "Garden"
