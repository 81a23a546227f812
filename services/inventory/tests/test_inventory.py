from services.inventory.app.application.service import InventoryService
from services.inventory.app.core_settings import get_settings
from services.inventory.app.domain.models import Inventory, StockMovement
from shared.core.errors import ServiceError
from shared.testing import assert_error, data_of


def test_list_inventory_empty(client):
    resp = client.get("/api/inventory")
    assert data_of(resp) == []
    assert resp.json()["count"] == 0


def test_create_inventory_records_initial_stock(client, make_inventory):
    inventory = make_inventory()
    assert inventory["product_id"] == 100
    assert inventory["sku"] == "TEST-SKU-001"
    assert inventory["quantity"] == 50
    assert inventory["reserved_quantity"] == 0
    assert inventory["available_quantity"] == 50
    assert inventory["last_restocked_at"] is not None

    fetched = data_of(client.get(f"/api/inventory/{inventory['id']}"))
    assert fetched["product_id"] == 100
    assert fetched["warehouse_location"] == "A-01-001"

    history = data_of(client.get("/api/inventory/history/100"))
    assert len(history) == 1
    assert history[0]["movement_type"] == "in"
    assert history[0]["reference_type"] == "initial_stock"
    assert history[0]["quantity"] == 50


def test_create_inventory_without_stock_writes_no_movement(client, make_inventory):
    make_inventory(quantity=0)
    assert data_of(client.get("/api/inventory/history/100")) == []


def test_create_inventory_uses_default_levels(client):
    inventory = data_of(client.post("/api/inventory", json={"product_id": 101}), 201)
    assert inventory["reorder_level"] == get_settings().DEFAULT_REORDER_LEVEL
    assert inventory["max_stock_level"] == get_settings().DEFAULT_MAX_STOCK_LEVEL
    assert inventory["sku"] == "TEST-SKU-002"


def test_create_inventory_twice_conflicts(client, make_inventory):
    make_inventory()
    resp = client.post("/api/inventory", json={"product_id": 100, "quantity": 5})
    assert_error(resp, 409, "already exists")


def test_create_inventory_for_unknown_product(client):
    resp = client.post("/api/inventory", json={"product_id": 999, "quantity": 5})
    assert_error(resp, 404, "Product not found")


def test_create_inventory_when_catalog_is_down(client, catalog):
    catalog.down = True
    resp = client.post("/api/inventory", json={"product_id": 100, "quantity": 5})
    body = assert_error(resp, 502)
    assert "product-catalog-service" in body["message"]
    assert data_of(client.get("/api/inventory")) == []


def test_receive_stock_adds_quantity_and_movement(client, make_inventory):
    make_inventory()
    resp = client.post(
        "/api/inventory/receive",
        json={"product_id": 100, "quantity": 5, "supplier_order_id": 7, "notes": "PO-7"},
    )
    inventory = data_of(resp)
    assert inventory["quantity"] == 55
    assert inventory["reserved_quantity"] == 0

    latest = data_of(client.get("/api/inventory/history/100"))[0]
    assert latest["movement_type"] == "in"
    assert latest["quantity"] == 5
    assert latest["reference_type"] == "purchase_order"
    assert latest["reference_id"] == 7


def test_reserve_more_than_available_changes_nothing(client, make_inventory):
    make_inventory()
    resp = client.post("/api/inventory/reserve", json={"product_id": 100, "quantity": 60})
    body = assert_error(resp, 400, "Insufficient stock")
    assert body["details"] == [
        {"product_id": 100, "sku": "TEST-SKU-001", "requested": 60, "available": 50}
    ]

    inventory = data_of(client.get("/api/inventory/product/100"))
    assert inventory["quantity"] == 50
    assert inventory["reserved_quantity"] == 0
    assert len(data_of(client.get("/api/inventory/history/100"))) == 1


def test_reserve_release_and_confirm(client, make_inventory):
    make_inventory()

    reserved = data_of(client.post("/api/inventory/reserve", json={"product_id": 100, "quantity": 20, "order_id": 1}))
    assert reserved["reserved_quantity"] == 20
    assert reserved["available_quantity"] == 30

    released = data_of(client.post("/api/inventory/release", json={"product_id": 100, "quantity": 5, "order_id": 1}))
    assert released["reserved_quantity"] == 15

    confirmed = data_of(
        client.post("/api/inventory/confirm-deduction", json={"product_id": 100, "quantity": 15, "order_id": 1})
    )
    assert confirmed["quantity"] == 35
    assert confirmed["reserved_quantity"] == 0

    history = data_of(client.get("/api/inventory/history/100"))
    assert [(m["movement_type"], m["reference_type"]) for m in history[:3]] == [
        ("out", "order"),
        ("adjustment", "order_release"),
        ("adjustment", "order_reservation"),
    ]


def test_release_more_than_reserved_fails(client, make_inventory):
    make_inventory()
    client.post("/api/inventory/reserve", json={"product_id": 100, "quantity": 3, "order_id": 1})
    resp = client.post("/api/inventory/release", json={"product_id": 100, "quantity": 4, "order_id": 1})
    assert_error(resp, 400, "only 3 reserved")

    resp = client.post("/api/inventory/confirm-deduction", json={"product_id": 100, "quantity": 4, "order_id": 1})
    assert_error(resp, 400)
    assert data_of(client.get("/api/inventory/product/100"))["quantity"] == 50


def test_return_stock(client, make_inventory):
    make_inventory()
    inventory = data_of(client.post("/api/inventory/return", json={"product_id": 100, "quantity": 2, "order_id": 9}))
    assert inventory["quantity"] == 52
    latest = data_of(client.get("/api/inventory/history/100"))[0]
    assert latest["movement_type"] == "return"
    assert latest["reference_type"] == "order_return"


def test_stock_operations_on_missing_inventory(client):
    resp = client.post("/api/inventory/reserve", json={"product_id": 555, "quantity": 1})
    assert_error(resp, 404, "Inventory not found")
    resp = client.post("/api/inventory/receive", json={"product_id": 555, "quantity": 1, "supplier_order_id": 1})
    assert_error(resp, 404)


def test_reserve_requires_positive_quantity(client, make_inventory):
    make_inventory()
    resp = client.post("/api/inventory/reserve", json={"product_id": 100, "quantity": 0})
    assert_error(resp, 400, "Invalid request")


def test_reserve_requires_quantity(client, make_inventory):
    make_inventory()
    body = assert_error(client.post("/api/inventory/reserve", json={"product_id": 100}), 400, "Invalid request")
    assert body["details"][0]["loc"] == ["body", "quantity"]


def test_adjust_removals_never_touch_reserved_stock(client, make_inventory):
    make_inventory()
    client.post("/api/inventory/reserve", json={"product_id": 100, "quantity": 45, "order_id": 1})

    resp = client.post("/api/inventory/adjust", json={"product_id": 100, "quantity": 10, "movement_type": "damaged"})
    assert_error(resp, 400, "Insufficient stock")

    resp = client.post("/api/inventory/adjust", json={"product_id": 100, "quantity": -10, "movement_type": "adjustment"})
    assert_error(resp, 400)

    inventory = data_of(
        client.post("/api/inventory/adjust", json={"product_id": 100, "quantity": 5, "movement_type": "expired"})
    )
    assert inventory["quantity"] == 45
    assert inventory["reserved_quantity"] == 45


def test_adjust_in_and_signed_adjustment(client, make_inventory):
    make_inventory()
    inventory = data_of(client.post(
        "/api/inventory/adjust",
        json={
            "product_id": 100,
            "quantity": 30,
            "movement_type": "in",
            "reference_type": "purchase_order",
            "reference_id": 12,
            "notes": "Received from PO PO-12",
        },
    ))
    assert inventory["quantity"] == 80

    inventory = data_of(
        client.post("/api/inventory/adjust", json={"product_id": 100, "quantity": -20, "movement_type": "adjustment"})
    )
    assert inventory["quantity"] == 60

    resp = client.post("/api/inventory/adjust", json={"product_id": 100, "quantity": 0, "movement_type": "adjustment"})
    assert_error(resp, 400, "must not be zero")

    movements = data_of(client.get("/api/stock-movements", params={"product_id": 100, "movement_type": "in"}))
    assert {m["reference_type"] for m in movements} == {"initial_stock", "purchase_order"}


def test_bulk_check(client, make_inventory):
    make_inventory()
    make_inventory(product_id=101, quantity=3)
    result = data_of(client.post(
        "/api/inventory/bulk-check",
        json={"items": [
            {"product_id": 100, "quantity": 10},
            {"product_id": 101, "quantity": 5},
            {"product_id": 404, "quantity": 1},
        ]},
    ))
    assert result["all_available"] is False
    assert [i["is_available"] for i in result["items"]] == [True, False, False]
    assert result["items"][1]["available"] == 3
    assert result["items"][2]["available"] == 0

    resp = client.post("/api/inventory/bulk-check", json={"items": []})
    assert_error(resp, 400, "Items array is required")


def test_update_and_delete_inventory(client, make_inventory):
    inventory = make_inventory()
    updated = data_of(client.put(
        f"/api/inventory/{inventory['id']}",
        json={"warehouse_location": "B-02-003", "reorder_level": 15},
    ))
    assert updated["warehouse_location"] == "B-02-003"
    assert updated["reorder_level"] == 15
    assert updated["quantity"] == 50

    data_of(client.delete(f"/api/inventory/{inventory['id']}"))
    assert_error(client.get(f"/api/inventory/{inventory['id']}"), 404)


def test_update_rejects_null_thresholds(client, make_inventory):
    inventory = make_inventory()
    resp = client.put(f"/api/inventory/{inventory['id']}", json={"reorder_level": None})
    assert_error(resp, 400, "reorder_level cannot be null")
    assert data_of(client.get(f"/api/inventory/{inventory['id']}"))["reorder_level"] == inventory["reorder_level"]


def test_list_filters(client, make_inventory):
    make_inventory()
    make_inventory(product_id=101, quantity=5, warehouse_location="C-09-001")
    low = data_of(client.get("/api/inventory", params={"low_stock": True}))
    assert [row["product_id"] for row in low] == [101]
    by_location = data_of(client.get("/api/inventory", params={"warehouse_location": "C-09"}))
    assert [row["product_id"] for row in by_location] == [101]


def test_analytics(client, make_inventory):
    make_inventory()
    make_inventory(product_id=101, quantity=0)
    client.post("/api/inventory/reserve", json={"product_id": 100, "quantity": 10})
    analytics = data_of(client.get("/api/inventory/analytics"))
    assert analytics["total_items"] == 2
    assert analytics["total_quantity"] == 50
    assert analytics["total_reserved"] == 10
    assert analytics["total_available"] == 40
    assert analytics["low_stock_items"] == 1
    assert analytics["out_of_stock_items"] == 1
    assert analytics["movements"]["in"]["count"] == 1
    assert analytics["movements"]["adjustment"]["quantity"] == 10


def test_acting_user_and_request_id(client, make_inventory):
    make_inventory()
    resp = client.post(
        "/api/inventory/reserve",
        json={"product_id": 100, "quantity": 1},
        headers={"X-User-ID": "warehouse-7", "X-Request-ID": "req-123"},
    )
    assert resp.headers["X-Request-ID"] == "req-123"
    latest = data_of(client.get("/api/inventory/history/100"))[0]
    assert latest["created_by"] == "warehouse-7"


def test_reserved_stays_within_quantity(db, catalog, make_inventory):
    make_inventory(quantity=20)
    service = InventoryService(db, catalog.client(), get_settings())
    steps = [
        ("reserve", 8), ("reserve", 15), ("confirm", 5), ("receive", 4),
        ("release", 10), ("reserve", 12), ("confirm", 20), ("release", 3),
        ("confirm", 12), ("reserve", 7),
    ]
    operations = {
        "reserve": service.reserve_stock,
        "release": service.release_reserved_stock,
        "confirm": service.confirm_stock_deduction,
        "receive": service.receive_stock,
    }
    for name, quantity in steps:
        try:
            operations[name](100, quantity)
        except ServiceError:
            pass
        row = db.query(Inventory).filter(Inventory.product_id == 100).populate_existing().one()
        assert 0 <= row.reserved_quantity <= row.quantity

    # Failed operations leave no ledger entry behind
    assert db.query(StockMovement).count() == 1 + 7
