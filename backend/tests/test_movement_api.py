from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from stockroom.models.product import MAX_QUANTITY


def _product(client, quantity):
    res = client.post("/api/products", json={"name": "Paint 1L", "unit": "can", "quantity": quantity})
    assert res.status_code == 201
    return res.json()["id"]


def test_create_movement_returns_movement_and_product(client):
    pid = _product(client, 10)
    res = client.post(
        "/api/movements",
        json={"product_id": pid, "kind": "in", "quantity": 5, "reason": "supplier delivery"},
    )
    assert res.status_code == 201
    body = res.json()
    assert body["movement"]["product_id"] == pid
    assert body["movement"]["kind"] == "in"
    assert body["movement"]["quantity"] == 5
    assert body["movement"]["reason"] == "supplier delivery"
    assert body["product"]["id"] == pid
    assert body["product"]["quantity"] == 15


def test_kind_is_normalized(client):
    pid = _product(client, 7)
    res = client.post("/api/movements", json={"product_id": pid, "kind": " ADJUST ", "quantity": 3})
    assert res.status_code == 201
    assert res.json()["movement"]["kind"] == "adjust"
    assert res.json()["product"]["quantity"] == 3


def test_over_withdrawal_clamps(client):
    pid = _product(client, 10)
    res = client.post("/api/movements", json={"product_id": pid, "kind": "out", "quantity": 15})
    assert res.status_code == 201
    assert res.json()["product"]["quantity"] == 0
    assert res.json()["movement"]["quantity"] == 15


def test_invalid_movements_are_400(client):
    pid = _product(client, 1)
    bad = [
        {"product_id": pid, "kind": "in", "quantity": 0},
        {"product_id": pid, "kind": "out", "quantity": -4},
        {"product_id": pid, "kind": "teleport", "quantity": 1},
        {"product_id": pid, "kind": "in"},
        {"product_id": pid, "kind": "in", "quantity": "lots"},
        {"kind": "in", "quantity": 1},
        {"product_id": "  ", "kind": "in", "quantity": 1},
    ]
    for payload in bad:
        res = client.post("/api/movements", json=payload)
        assert res.status_code == 400, payload
    assert client.get("/api/movements").json() == []
    assert client.get(f"/api/products/{pid}").json()["quantity"] == 1


def test_unknown_product_is_404(client):
    res = client.post("/api/movements", json={"product_id": "nope", "kind": "in", "quantity": 1})
    assert res.status_code == 404
    assert res.json()["detail"] == "Product not found for movement"
    assert client.get("/api/movements").json() == []


def test_storage_failure_is_500(client, monkeypatch):
    from stockroom.repositories.movement_repo import MovementRepository

    pid = _product(client, 4)

    def boom(self, movement):
        raise OperationalError("INSERT INTO movements", {}, Exception("disk I/O error"))

    monkeypatch.setattr(MovementRepository, "add", boom)
    res = client.post("/api/movements", json={"product_id": pid, "kind": "in", "quantity": 1})
    assert res.status_code == 500
    monkeypatch.undo()

    assert client.get(f"/api/products/{pid}").json()["quantity"] == 4
    assert client.get("/api/movements").json() == []


def test_product_omitted_when_read_back_fails(client, monkeypatch):
    pid = _product(client, 4)

    def boom(self, *args, **kwargs):
        raise OperationalError("SELECT products", {}, Exception("connection lost"))

    monkeypatch.setattr(Session, "refresh", boom)
    res = client.post("/api/movements", json={"product_id": pid, "kind": "out", "quantity": 1})
    monkeypatch.undo()

    assert res.status_code == 201
    body = res.json()
    assert "product" not in body
    assert body["movement"]["product_id"] == pid
    assert body["movement"]["kind"] == "out"
    assert body["movement"]["quantity"] == 1

    # the movement was committed before the read-back failed
    assert client.get(f"/api/products/{pid}").json()["quantity"] == 3
    assert [m["id"] for m in client.get("/api/movements").json()] == [body["movement"]["id"]]


def test_list_movements(client):
    a = _product(client, 0)
    b = _product(client, 0)
    client.post("/api/movements", json={"product_id": a, "kind": "in", "quantity": 1})
    client.post("/api/movements", json={"product_id": b, "kind": "in", "quantity": 2})
    client.post("/api/movements", json={"product_id": a, "kind": "out", "quantity": 1})

    res = client.get("/api/movements")
    assert res.status_code == 200
    assert len(res.json()) == 3

    res = client.get("/api/movements", params={"product_id": a})
    assert [(m["kind"], m["quantity"]) for m in res.json()] == [("out", 1), ("in", 1)]

    res = client.get("/api/movements", params={"limit": 1})
    assert len(res.json()) == 1


def test_oversized_quantities_are_400(client):
    pid = _product(client, 1)
    res = client.post("/api/movements", json={"product_id": pid, "kind": "in", "quantity": 2**63})
    assert res.status_code == 400
    assert res.headers["content-type"].startswith("application/json")

    res = client.post("/api/products", json={"name": "Huge", "unit": "pc", "quantity": 2**63})
    assert res.status_code == 400
    res = client.put(f"/api/products/{pid}", json={"min_stock": 2**63})
    assert res.status_code == 400

    assert client.get(f"/api/products/{pid}").json()["quantity"] == 1
    assert client.get("/api/movements").json() == []


def test_in_that_would_overflow_stock_is_400(client):
    pid = _product(client, MAX_QUANTITY)
    res = client.post("/api/movements", json={"product_id": pid, "kind": "in", "quantity": 1})
    assert res.status_code == 400
    assert client.get(f"/api/products/{pid}").json()["quantity"] == MAX_QUANTITY
    assert client.get("/api/movements").json() == []
