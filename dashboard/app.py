"""
Procurement Dashboard — FastAPI backend.

Serves the JSON API behind the plant's procurement screens: supplier and
raw material masters, the stock ledger, and the purchase order lifecycle.

All state lives in one InMemoryStore seeded from the master CSVs on first
use.  Purchase order status is only ever changed through the
PurchaseOrderWorkflow, so every rule in the transition table applies to API
callers exactly as it does in-process.

Endpoints
---------
  GET   /api/health                               → liveness probe + store counts
  GET   /api/stats                                → dashboard header figures
  GET   /api/suppliers                            → supplier master (?product_type=)
  POST  /api/suppliers                            → add a supplier
  GET   /api/materials                            → raw material master (?low_stock=true)
  POST  /api/materials                            → add a raw material
  GET   /api/materials/{id}/movements             → stock ledger for one material
  POST  /api/stock-movements                      → manual IN/OUT (job consumption etc.)
  GET   /api/purchase-orders                      → list (?status=, ?supplier_id=)
  POST  /api/purchase-orders                      → create a draft PO
  GET   /api/purchase-orders/{id}                 → full PO + available actions
  PATCH /api/purchase-orders/{id}                 → edit a draft
  GET   /api/purchase-orders/{id}/delivery        → delivery tracking rows
  POST  /api/purchase-orders/{id}/events/{event}  → submit / approve / reject / send / acknowledge / cancel
  POST  /api/purchase-orders/{id}/deliveries      → record a goods receipt against one item
  POST  /api/purchase-orders/{id}/mark-delivered  → receive everything outstanding

Errors
------
  404  PO, item, supplier or material not found
  409  event not legal from the PO's current status
  422  bad quantity (zero, negative, over-delivery) or malformed payload
"""
import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query

from config import Config
from dashboard.models import (
    DeliveryRequest,
    DraftUpdate,
    EventRequest,
    MarkDeliveredRequest,
    MaterialCreate,
    PurchaseOrderCreate,
    StockMovementCreate,
    SupplierCreate,
)
from models.purchase_order import POStatus, PurchaseOrder
from workflow import (
    InMemoryStore,
    InvalidQuantity,
    InvalidTransition,
    ItemNotFound,
    MaterialNotFound,
    PurchaseOrderNotFound,
    PurchaseOrderWorkflow,
    QuantityExceeded,
    StockService,
    SupplierNotFound,
    WorkflowError,
    dashboard_stats,
    delivery_tracking,
    seed_store,
)
from workflow.transitions import POEvent

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Workflow (lazy: masters are loaded on the first request)
# ---------------------------------------------------------------------------
_workflow: Optional[PurchaseOrderWorkflow] = None


def get_workflow() -> PurchaseOrderWorkflow:
    global _workflow
    if _workflow is None:
        config = Config()
        store = seed_store(InMemoryStore(), config.suppliers_csv, config.materials_csv)
        _workflow = PurchaseOrderWorkflow(store, config)
    return _workflow


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(title="Procurement Dashboard", docs_url=None, redoc_url=None)


def _http_error(exc: WorkflowError) -> HTTPException:
    if isinstance(exc, (PurchaseOrderNotFound, ItemNotFound, SupplierNotFound, MaterialNotFound)):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InvalidTransition):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, (QuantityExceeded, InvalidQuantity)):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _po_payload(workflow: PurchaseOrderWorkflow, po: PurchaseOrder) -> dict:
    return {
        **po.model_dump(mode="json"),
        "available_events": [e.value for e in workflow.available_events(po.id)],
    }


# ── Health / stats ───────────────────────────────────────────────────────────

@app.get("/api/health")
def health(workflow: PurchaseOrderWorkflow = Depends(get_workflow)):
    return {
        "status": "ok",
        "suppliers_csv": str(workflow.config.suppliers_csv),
        "materials_csv": str(workflow.config.materials_csv),
        **workflow.store.counts(),
    }


@app.get("/api/stats")
def stats(workflow: PurchaseOrderWorkflow = Depends(get_workflow)):
    return dashboard_stats(workflow.store)


# ── Suppliers ────────────────────────────────────────────────────────────────

@app.get("/api/suppliers")
def list_suppliers(
    product_type: Optional[str] = Query(default=None),
    workflow: PurchaseOrderWorkflow = Depends(get_workflow),
):
    if product_type:
        suppliers = workflow.suppliers.by_product_type(product_type)
    else:
        suppliers = workflow.suppliers.list()
    return [s.model_dump(mode="json") for s in suppliers]


@app.post("/api/suppliers", status_code=201)
def create_supplier(body: SupplierCreate, workflow: PurchaseOrderWorkflow = Depends(get_workflow)):
    supplier = workflow.suppliers.add(**body.model_dump())
    return supplier.model_dump(mode="json")


# ── Raw materials / stock ────────────────────────────────────────────────────

@app.get("/api/materials")
def list_materials(
    low_stock: bool = Query(default=False),
    workflow: PurchaseOrderWorkflow = Depends(get_workflow),
):
    materials = workflow.materials.low_stock() if low_stock else workflow.materials.list()
    return [m.model_dump(mode="json") for m in materials]


@app.post("/api/materials", status_code=201)
def create_material(body: MaterialCreate, workflow: PurchaseOrderWorkflow = Depends(get_workflow)):
    material = workflow.materials.add(**body.model_dump())
    return material.model_dump(mode="json")


@app.get("/api/materials/{material_id}/movements")
def material_movements(material_id: str, workflow: PurchaseOrderWorkflow = Depends(get_workflow)):
    try:
        workflow.materials.get(material_id)
    except WorkflowError as exc:
        raise _http_error(exc)
    return [m.model_dump(mode="json") for m in workflow.movements.by_material(material_id)]


@app.post("/api/stock-movements", status_code=201)
def create_stock_movement(
    body: StockMovementCreate,
    workflow: PurchaseOrderWorkflow = Depends(get_workflow),
):
    try:
        movement = StockService(workflow.store).record_manual_movement(
            material_id=body.material_id,
            movement_type=body.type,
            quantity=body.quantity,
            reason=body.reason,
            job_id=body.job_id,
            notes=body.notes,
            created_by=body.created_by,
        )
    except WorkflowError as exc:
        raise _http_error(exc)
    return movement.model_dump(mode="json")


# ── Purchase orders ──────────────────────────────────────────────────────────

@app.get("/api/purchase-orders")
def list_purchase_orders(
    status: Optional[str] = Query(default=None),
    supplier_id: Optional[str] = Query(default=None),
    workflow: PurchaseOrderWorkflow = Depends(get_workflow),
):
    if status:
        allowed = [s.value for s in POStatus]
        if status not in allowed:
            raise HTTPException(400, f"Status must be one of: {allowed}")
        orders = workflow.list_by_status(status)
    else:
        orders = workflow.list_all()
    if supplier_id:
        orders = [po for po in orders if po.supplier_id == supplier_id]
    return [po.model_dump(mode="json") for po in orders]


@app.post("/api/purchase-orders", status_code=201)
def create_purchase_order(
    body: PurchaseOrderCreate,
    workflow: PurchaseOrderWorkflow = Depends(get_workflow),
):
    try:
        po = workflow.create_purchase_order(
            body.supplier_id,
            body.items,
            requested_by=body.requested_by,
            expected_delivery=body.expected_delivery,
            terms=body.terms,
            notes=body.notes,
            currency=body.currency,
        )
    except WorkflowError as exc:
        raise _http_error(exc)
    return _po_payload(workflow, po)


@app.get("/api/purchase-orders/{po_id}")
def get_purchase_order(po_id: str, workflow: PurchaseOrderWorkflow = Depends(get_workflow)):
    try:
        po = workflow.get_by_id(po_id)
    except WorkflowError as exc:
        raise _http_error(exc)
    return _po_payload(workflow, po)


@app.patch("/api/purchase-orders/{po_id}")
def update_purchase_order(
    po_id: str,
    body: DraftUpdate,
    workflow: PurchaseOrderWorkflow = Depends(get_workflow),
):
    try:
        po = workflow.update_draft(
            po_id,
            items=body.items,
            expected_delivery=body.expected_delivery,
            terms=body.terms,
            notes=body.notes,
        )
    except WorkflowError as exc:
        raise _http_error(exc)
    return _po_payload(workflow, po)


@app.get("/api/purchase-orders/{po_id}/delivery")
def get_delivery_tracking(po_id: str, workflow: PurchaseOrderWorkflow = Depends(get_workflow)):
    try:
        po = workflow.get_by_id(po_id)
    except WorkflowError as exc:
        raise _http_error(exc)
    return {"po_id": po.id, "status": po.status.value, "items": delivery_tracking(po)}


@app.post("/api/purchase-orders/{po_id}/events/{event}")
def raise_event(
    po_id: str,
    event: str,
    body: Optional[EventRequest] = None,
    workflow: PurchaseOrderWorkflow = Depends(get_workflow),
):
    """
    Apply a status event.  Goods receipts have their own endpoints because
    they carry item quantities; posting record_delivery here is a 409.
    """
    body = body or EventRequest()
    try:
        if event == POEvent.RECORD_DELIVERY.value:
            po = workflow.get_by_id(po_id)
            raise InvalidTransition(po_id, po.status.value, event)
        if event == POEvent.APPROVE.value:
            po = workflow.approve(po_id, approved_by=body.approved_by or body.actor or "")
        else:
            payload = {"actor": body.actor} if body.actor else {}
            po = workflow.transition(po_id, event, **payload)
    except WorkflowError as exc:
        raise _http_error(exc)
    return _po_payload(workflow, po)


@app.post("/api/purchase-orders/{po_id}/deliveries")
def record_delivery(
    po_id: str,
    body: DeliveryRequest,
    workflow: PurchaseOrderWorkflow = Depends(get_workflow),
):
    try:
        po = workflow.record_delivery(
            po_id,
            body.item_id,
            body.quantity,
            quality_accepted=body.quality_accepted,
            grn_number=body.grn_number,
            inspection_notes=body.inspection_notes,
            actor=body.actor,
        )
    except WorkflowError as exc:
        raise _http_error(exc)
    return _po_payload(workflow, po)


@app.post("/api/purchase-orders/{po_id}/mark-delivered")
def mark_delivered(
    po_id: str,
    body: Optional[MarkDeliveredRequest] = None,
    workflow: PurchaseOrderWorkflow = Depends(get_workflow),
):
    body = body or MarkDeliveredRequest()
    try:
        po = workflow.mark_delivered(
            po_id,
            grn_number=body.grn_number,
            quality_accepted=body.quality_accepted,
            inspection_notes=body.inspection_notes,
            actor=body.actor,
        )
    except WorkflowError as exc:
        raise _http_error(exc)
    return _po_payload(workflow, po)
