"""
Integration tests for the dashboard API.
"""
import pytest
from fastapi.testclient import TestClient

from dashboard.app import app, get_workflow


@pytest.fixture
def client(workflow):
    app.dependency_overrides[get_workflow] = lambda: workflow
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create(client, quantity=500):
    resp = client.post("/api/purchase-orders", json={
        "supplier_id": "SUP001",
        "items": [{"material_id": "RM001", "quantity": quantity, "rate": 45.5}],
        "requested_by": "John Doe",
    })
    assert resp.status_code == 201
    return resp.json()


def _acknowledge(client, po_id):
    client.post(f"/api/purchase-orders/{po_id}/events/submit")
    client.post(f"/api/purchase-orders/{po_id}/events/approve", json={"approved_by": "Jane Smith"})
    client.post(f"/api/purchase-orders/{po_id}/events/send")
    resp = client.post(f"/api/purchase-orders/{po_id}/events/acknowledge")
    assert resp.json()["status"] == "acknowledged"
    return resp.json()


@pytest.mark.api
@pytest.mark.integration
class TestMasterEndpoints:
    """Suppliers, materials and stock movements."""

    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["materials"] == 3

    def test_list_suppliers(self, client):
        resp = client.get("/api/suppliers", params={"product_type": "Adhesive & Glue"})
        assert [s["id"] for s in resp.json()] == ["SUP002"]

    def test_create_supplier(self, client):
        resp = client.post("/api/suppliers", json={
            "name": "Wire Industries Ltd",
            "contact_persons": [{"name": "Suresh Reddy", "phone": "+91 9876543217"}],
        })
        assert resp.status_code == 201
        assert resp.json()["id"] == "SUP003"

    def test_low_stock_materials(self, client):
        resp = client.get("/api/materials", params={"low_stock": "true"})
        assert [m["id"] for m in resp.json()] == ["RM002"]
        assert resp.json()[0]["status"] == "Low Stock"

    def test_create_material_rejects_negative_stock(self, client):
        resp = client.post("/api/materials", json={"name": "Kraft Liner", "current_stock": -1})
        assert resp.status_code == 422

    def test_manual_stock_movement(self, client):
        resp = client.post("/api/stock-movements", json={
            "material_id": "RM001", "type": "OUT", "quantity": 250, "job_id": "JOB001",
        })
        assert resp.status_code == 201
        assert resp.json()["id"] == "SM001"

        ledger = client.get("/api/materials/RM001/movements").json()
        assert [m["job_id"] for m in ledger] == ["JOB001"]

    def test_nan_stock_movement_is_422(self, client):
        resp = client.post(
            "/api/stock-movements",
            content='{"material_id": "RM001", "type": "OUT", "quantity": NaN}',
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 422

    def test_stock_movement_unknown_material(self, client):
        resp = client.post("/api/stock-movements", json={"material_id": "RM999", "type": "IN", "quantity": 5})
        assert resp.status_code == 404

    def test_movements_for_unknown_material(self, client):
        assert client.get("/api/materials/RM999/movements").status_code == 404


@pytest.mark.api
@pytest.mark.integration
class TestPurchaseOrderEndpoints:
    """The PO lifecycle over HTTP."""

    def test_create_returns_draft_with_actions(self, client):
        po = _create(client)
        assert po["status"] == "draft"
        assert po["total_amount"] == 22750.0
        assert po["available_events"] == ["submit", "cancel"]

    def test_create_with_unknown_supplier(self, client):
        resp = client.post("/api/purchase-orders", json={
            "supplier_id": "SUP999", "items": [{"material_id": "RM001", "quantity": 1, "rate": 1}],
        })
        assert resp.status_code == 404

    def test_create_with_zero_quantity(self, client):
        resp = client.post("/api/purchase-orders", json={
            "supplier_id": "SUP001", "items": [{"material_id": "RM001", "quantity": 0, "rate": 1}],
        })
        assert resp.status_code == 422

    def test_illegal_event_is_409(self, client):
        po = _create(client)
        resp = client.post(f"/api/purchase-orders/{po['id']}/events/approve", json={"approved_by": "Jane"})
        assert resp.status_code == 409
        assert client.get(f"/api/purchase-orders/{po['id']}").json()["status"] == "draft"

    def test_unknown_event_is_409(self, client):
        po = _create(client)
        assert client.post(f"/api/purchase-orders/{po['id']}/events/teleport").status_code == 409

    def test_record_delivery_event_is_409(self, client):
        po = _create(client)
        _acknowledge(client, po["id"])
        resp = client.post(f"/api/purchase-orders/{po['id']}/events/record_delivery")
        assert resp.status_code == 409

    def test_approve_draft_without_approver_is_409(self, client):
        po = _create(client)
        resp = client.post(f"/api/purchase-orders/{po['id']}/events/approve")
        assert resp.status_code == 409

    def test_approve_without_approver(self, client):
        po = _create(client)
        client.post(f"/api/purchase-orders/{po['id']}/events/submit")
        resp = client.post(f"/api/purchase-orders/{po['id']}/events/approve")
        assert resp.status_code == 400

    def test_unknown_po(self, client):
        assert client.get("/api/purchase-orders/PO-000000-0001").status_code == 404

    def test_edit_draft(self, client):
        po = _create(client)
        resp = client.patch(f"/api/purchase-orders/{po['id']}", json={
            "items": [{"material_id": "RM001", "quantity": 100, "rate": 45.5}],
            "terms": "Net 30 days payment terms",
        })
        assert resp.status_code == 200
        assert resp.json()["total_amount"] == 4550.0
        assert resp.json()["terms"] == "Net 30 days payment terms"

    def test_edit_after_submit_is_409(self, client):
        po = _create(client)
        client.post(f"/api/purchase-orders/{po['id']}/events/submit")
        assert client.patch(f"/api/purchase-orders/{po['id']}", json={"notes": "x"}).status_code == 409

    def test_list_by_status(self, client):
        first = _create(client)
        _create(client)
        client.post(f"/api/purchase-orders/{first['id']}/events/submit")
        resp = client.get("/api/purchase-orders", params={"status": "pending"})
        assert [po["id"] for po in resp.json()] == [first["id"]]
        assert client.get("/api/purchase-orders", params={"status": "lost"}).status_code == 400

    def test_partial_then_full_delivery(self, client):
        po = _create(client)
        _acknowledge(client, po["id"])

        resp = client.post(f"/api/purchase-orders/{po['id']}/deliveries", json={
            "item_id": "POI001", "quantity": 300, "quality_accepted": True, "grn_number": "GRN-1",
        })
        assert resp.status_code == 200
        assert resp.json()["status"] == "acknowledged"

        tracking = client.get(f"/api/purchase-orders/{po['id']}/delivery").json()
        assert tracking["items"][0]["progress_pct"] == 60

        resp = client.post(f"/api/purchase-orders/{po['id']}/mark-delivered")
        assert resp.json()["status"] == "delivered"
        assert resp.json()["available_events"] == []

        stock = {m["id"]: m["current_stock"] for m in client.get("/api/materials").json()}
        assert stock["RM001"] == 3000
        assert len(client.get("/api/materials/RM001/movements").json()) == 2

    def test_over_delivery_is_422(self, client):
        po = _create(client)
        _acknowledge(client, po["id"])
        resp = client.post(f"/api/purchase-orders/{po['id']}/deliveries", json={
            "item_id": "POI001", "quantity": 600,
        })
        assert resp.status_code == 422
        assert client.get("/api/materials/RM001/movements").json() == []

    def test_nan_delivery_quantity_is_422(self, client):
        po = _create(client)
        _acknowledge(client, po["id"])
        resp = client.post(
            f"/api/purchase-orders/{po['id']}/deliveries",
            content='{"item_id": "POI001", "quantity": NaN}',
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 422
        assert client.get("/api/materials/RM001/movements").json() == []

    def test_nan_item_quantity_is_422(self, client):
        resp = client.post(
            "/api/purchase-orders",
            content='{"supplier_id": "SUP001", "items": [{"material_id": "RM001", "quantity": NaN, "rate": 45.5}]}',
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 422
        assert client.get("/api/purchase-orders").json() == []

    def test_delivery_unknown_item_is_404(self, client):
        po = _create(client)
        _acknowledge(client, po["id"])
        resp = client.post(f"/api/purchase-orders/{po['id']}/deliveries", json={
            "item_id": "POI999", "quantity": 5,
        })
        assert resp.status_code == 404

    def test_stats(self, client):
        po = _create(client)
        client.post(f"/api/purchase-orders/{po['id']}/events/submit")
        stats = client.get("/api/stats").json()
        assert stats["pending_approval"] == 1
        assert stats["total_value"] == 22750.0
