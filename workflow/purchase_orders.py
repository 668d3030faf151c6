"""
Purchase order workflow.

PurchaseOrderWorkflow is the only code that changes a PO's status.  Every
mutating call:

  1. takes the PO's lock (two receipts against one PO never interleave),
  2. opens a store transaction,
  3. checks the event against the transition table,
  4. writes a new PurchaseOrder (version + 1, updated_at, audit entry).

Goods receipt (record_delivery / mark_delivered) also moves stock: each
receipt adds one IN movement to the ledger and raises the material's stock
by the received quantity.  If any part of a receipt fails, the store
transaction restores the PO, the materials and the ledger as they were.
"""
import inspect
import logging
import math
import threading
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Iterable, Iterator, Optional

from config import Config
from models.purchase_order import POItem, POItemDraft, POStatus, PurchaseOrder, StatusChange
from models.stock_movement import MovementType, StockMovement
from .errors import (
    InvalidQuantity,
    InvalidTransition,
    ItemNotFound,
    PurchaseOrderNotFound,
    QuantityExceeded,
    SupplierNotFound,
    WorkflowError,
)
from .inventory import MaterialService, MovementLog, SupplierService, next_sequential_id
from .store import InMemoryStore
from .transitions import POEvent, available_events, next_status

logger = logging.getLogger(__name__)

DELIVERY_REASON = "Purchase Order Delivery"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_positive(value) -> bool:
    """True for a finite number greater than zero (NaN and infinity are not)."""
    return value is not None and math.isfinite(value) and value > 0


class PurchaseOrderWorkflow:
    """
    Creates purchase orders and drives them through their lifecycle.

    Usage:
        workflow = PurchaseOrderWorkflow(store)
        po = workflow.create_purchase_order("SUP001", [{"material_id": "RM001", "quantity": 500, "rate": 45.5}])
        workflow.submit(po.id)
        workflow.approve(po.id, approved_by="Jane Smith")
        workflow.send(po.id)
        workflow.acknowledge(po.id)
        workflow.record_delivery(po.id, "POI001", 500, True, grn_number="GRN-1")
    """

    def __init__(self, store: InMemoryStore, config: Optional[Config] = None):
        self.config = config or Config()
        self.store = store
        self.suppliers = SupplierService(store)
        self.materials = MaterialService(store)
        self.movements = MovementLog(store)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_id(self, po_id: str) -> PurchaseOrder:
        po = self.store.purchase_orders.get(po_id)
        if po is None:
            raise PurchaseOrderNotFound(po_id)
        return po

    def list_all(self) -> list[PurchaseOrder]:
        return self.store.snapshot("purchase_orders")

    def list_by_status(self, status: POStatus | str) -> list[PurchaseOrder]:
        status = POStatus(status)
        return [po for po in self.store.snapshot("purchase_orders") if po.status == status]

    def list_pending(self) -> list[PurchaseOrder]:
        """POs waiting for approval."""
        return self.list_by_status(POStatus.PENDING)

    def list_by_supplier(self, supplier_id: str) -> list[PurchaseOrder]:
        return [po for po in self.store.snapshot("purchase_orders") if po.supplier_id == supplier_id]

    def available_events(self, po_id: str) -> list[POEvent]:
        return available_events(self.get_by_id(po_id).status)

    # ------------------------------------------------------------------
    # Creation and draft editing
    # ------------------------------------------------------------------

    def create_purchase_order(
        self,
        supplier_id: str,
        items: Iterable[POItemDraft | dict],
        requested_by: Optional[str] = None,
        expected_delivery: Optional[str] = None,
        terms: Optional[str] = None,
        notes: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> PurchaseOrder:
        """Create a new PO in draft status."""
        supplier = self.suppliers.find(supplier_id)
        if supplier is None and self.config.require_known_supplier:
            raise SupplierNotFound(supplier_id)

        po_items = self._build_items(items)
        now = _now_iso()

        with self.store.transaction():
            prefix = f"PO-{datetime.now(timezone.utc):%Y%m}-"
            po_id = next_sequential_id(prefix, self.store.purchase_orders, width=4)
            po = PurchaseOrder(
                id=po_id,
                supplier_id=supplier_id,
                supplier_name=supplier.name if supplier else None,
                status=POStatus.DRAFT,
                items=po_items,
                total_amount=round(sum(item.total for item in po_items), 2),
                currency=currency or self.config.currency,
                requested_by=requested_by,
                expected_delivery=expected_delivery,
                terms=terms,
                notes=notes,
                created_at=now,
                updated_at=now,
                history=[StatusChange(
                    to_status=POStatus.DRAFT,
                    event="create",
                    actor=requested_by or "system",
                    at=now,
                )],
            )
            self.store.purchase_orders[po.id] = po

        logger.info(
            "PO created: %s  supplier=%s  items=%d  total=%.2f %s",
            po.id, supplier_id, len(po.items), po.total_amount, po.currency,
        )
        return po

    def update_draft(
        self,
        po_id: str,
        items: Optional[Iterable[POItemDraft | dict]] = None,
        expected_delivery: Optional[str] = None,
        terms: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> PurchaseOrder:
        """Edit a PO that has not been submitted yet.  Items, when given, replace all lines."""
        with self._locked(po_id):
            po = self.get_by_id(po_id)
            if po.status != POStatus.DRAFT:
                raise InvalidTransition(po_id, po.status.value, "edit")

            updates: dict = {}
            if items is not None:
                po_items = self._build_items(items)
                updates["items"] = po_items
                updates["total_amount"] = round(sum(item.total for item in po_items), 2)
            if expected_delivery is not None:
                updates["expected_delivery"] = expected_delivery
            if terms is not None:
                updates["terms"] = terms
            if notes is not None:
                updates["notes"] = notes

            updated = self._save(po, **updates)

        logger.info("PO draft edited: %s  fields=%s", po_id, sorted(updates))
        return updated

    def _build_items(self, items: Iterable[POItemDraft | dict]) -> list[POItem]:
        drafts = [
            item if isinstance(item, POItemDraft) else POItemDraft.model_validate(item)
            for item in items
        ]
        if not drafts:
            raise InvalidQuantity("A purchase order needs at least one item")

        po_items = []
        for index, draft in enumerate(drafts, start=1):
            if not _is_positive(draft.quantity):
                raise InvalidQuantity(
                    f"Quantity for {draft.material_id} must be greater than zero", draft.quantity,
                )
            if not _is_positive(draft.rate):
                raise InvalidQuantity(
                    f"Rate for {draft.material_id} must be greater than zero", draft.rate,
                )
            material = self.materials.find(draft.material_id)
            if material is None:
                logger.warning("PO line references unknown material: %s", draft.material_id)
            po_items.append(POItem(
                id=f"POI{index:03d}",
                material_id=draft.material_id,
                material_name=draft.material_name or (material.name if material else None),
                unit=draft.unit or (material.unit if material else None),
                quantity=draft.quantity,
                rate=draft.rate,
                total=round(draft.quantity * draft.rate, 2),
            ))
        return po_items

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def submit(self, po_id: str, actor: str = "system") -> PurchaseOrder:
        return self._transition(po_id, POEvent.SUBMIT, actor)

    def approve(self, po_id: str, approved_by: str) -> PurchaseOrder:
        self._require(self.get_by_id(po_id), POEvent.APPROVE)
        if not approved_by or not approved_by.strip():
            raise WorkflowError("approved_by is required to approve a purchase order")
        return self._transition(po_id, POEvent.APPROVE, approved_by, approved_by=approved_by.strip())

    def reject(self, po_id: str, actor: str = "system") -> PurchaseOrder:
        return self._transition(po_id, POEvent.REJECT, actor)

    def send(self, po_id: str, actor: str = "system") -> PurchaseOrder:
        return self._transition(po_id, POEvent.SEND, actor)

    def acknowledge(self, po_id: str, actor: str = "system") -> PurchaseOrder:
        return self._transition(po_id, POEvent.ACKNOWLEDGE, actor)

    def cancel(self, po_id: str, actor: str = "system") -> PurchaseOrder:
        return self._transition(po_id, POEvent.CANCEL, actor)

    def transition(self, po_id: str, event: POEvent | str, **payload) -> PurchaseOrder:
        """
        Dispatch an event by name, e.g. transition(po_id, "approve", approved_by="Jane").

        Unknown event names are reported as an InvalidTransition from the
        PO's current status.
        """
        po = self.get_by_id(po_id)
        try:
            event = POEvent(event)
        except ValueError:
            raise InvalidTransition(po_id, po.status.value, str(event)) from None

        handlers = {
            POEvent.SUBMIT:          self.submit,
            POEvent.APPROVE:         self.approve,
            POEvent.REJECT:          self.reject,
            POEvent.SEND:            self.send,
            POEvent.ACKNOWLEDGE:     self.acknowledge,
            POEvent.CANCEL:          self.cancel,
            POEvent.RECORD_DELIVERY: self.record_delivery,
        }
        handler = handlers[event]
        try:
            inspect.signature(handler).bind(po_id, **payload)
        except TypeError as exc:
            raise WorkflowError(f"Bad payload for {event.value}: {exc}") from None
        return handler(po_id, **payload)

    def _transition(self, po_id: str, event: POEvent, actor: str, **updates) -> PurchaseOrder:
        with self._locked(po_id):
            po = self.get_by_id(po_id)
            target = self._require(po, event)
            updated = self._save(po, status=target, _event=event, _actor=actor, **updates)
        logger.info("PO %s: %s -> %s (%s by %s)", po_id, po.status.value, target.value, event.value, actor)
        return updated

    # ------------------------------------------------------------------
    # Goods receipt
    # ------------------------------------------------------------------

    def record_delivery(
        self,
        po_id: str,
        item_id: str,
        qty: float,
        quality_accepted: Optional[bool] = None,
        grn_number: Optional[str] = None,
        inspection_notes: Optional[str] = None,
        actor: str = "system",
    ) -> PurchaseOrder:
        """
        Record receipt of qty units against one item of an acknowledged PO.

        The PO becomes delivered once every item is received in full;
        until then it stays acknowledged with partial item quantities.
        """
        with self._locked(po_id):
            po = self.get_by_id(po_id)
            self._require(po, POEvent.RECORD_DELIVERY)
            if po.get_item(item_id) is None:
                raise ItemNotFound(po_id, item_id)
            updated = self._receive(
                po, {item_id: qty}, quality_accepted, grn_number, inspection_notes, actor,
            )
        return updated

    def mark_delivered(
        self,
        po_id: str,
        grn_number: Optional[str] = None,
        quality_accepted: Optional[bool] = True,
        inspection_notes: Optional[str] = None,
        actor: str = "system",
    ) -> PurchaseOrder:
        """Receive the outstanding quantity of every item in one step."""
        with self._locked(po_id):
            po = self.get_by_id(po_id)
            self._require(po, POEvent.RECORD_DELIVERY)
            receipts = {item.id: item.remaining_quantity for item in po.items if not item.is_complete}
            updated = self._receive(
                po, receipts, quality_accepted, grn_number, inspection_notes, actor,
            )
        return updated

    def _receive(
        self,
        po: PurchaseOrder,
        receipts: dict[str, float],
        quality_accepted: Optional[bool],
        grn_number: Optional[str],
        inspection_notes: Optional[str],
        actor: str,
    ) -> PurchaseOrder:
        """Apply receipts to po; must run inside _locked()."""
        tolerance = self.config.quantity_tolerance
        today = date.today().isoformat()
        items = list(po.items)

        for item_id, qty in receipts.items():
            if not _is_positive(qty):
                raise InvalidQuantity(f"Delivered quantity must be greater than zero, got {qty}", qty)

            index = next(i for i, item in enumerate(items) if item.id == item_id)
            item = items[index]
            delivered = item.delivered_quantity + qty
            if delivered > item.quantity + tolerance:
                raise QuantityExceeded(po.id, item_id, qty, item.delivered_quantity, item.quantity)
            if abs(item.quantity - delivered) <= tolerance:
                delivered = item.quantity

            self.materials.apply_stock_delta(item.material_id, qty, MovementType.IN)
            self.movements.record(StockMovement(
                material_id=item.material_id,
                type=MovementType.IN,
                quantity=qty,
                reason=DELIVERY_REASON,
                po_number=po.id,
                date=today,
                notes=f"Delivered from {po.supplier_name or po.supplier_id}"
                      + (f" (GRN {grn_number})" if grn_number else ""),
                created_by=actor,
            ))

            items[index] = item.model_copy(update={
                "delivered_quantity": delivered,
                "quality_accepted": quality_accepted,
                "grn_number": grn_number,
                "inspection_notes": inspection_notes,
            })
            logger.info(
                "PO %s item %s received %g (%g/%g) grn=%s quality=%s",
                po.id, item_id, qty, delivered, item.quantity, grn_number, quality_accepted,
            )

        complete = all(item.is_complete for item in items)
        if complete:
            updated = self._save(
                po, items=items, status=POStatus.DELIVERED,
                _event=POEvent.RECORD_DELIVERY, _actor=actor,
            )
            logger.info("PO %s: acknowledged -> delivered (all items received)", po.id)
        else:
            updated = self._save(po, items=items)
        return updated

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _locked(self, po_id: str) -> Iterator[None]:
        """
        Serialise mutations of one PO and make them all-or-nothing.

        Locks exist only for known POs and are dropped once the PO reaches a
        terminal status, since nothing can change it after that.
        """
        with self._locks_guard:
            if po_id not in self.store.purchase_orders:
                raise PurchaseOrderNotFound(po_id)
            lock = self._locks.setdefault(po_id, threading.Lock())
        with lock, self.store.transaction():
            yield
        po = self.store.purchase_orders.get(po_id)
        if po is not None and po.status.is_terminal:
            with self._locks_guard:
                self._locks.pop(po_id, None)

    @staticmethod
    def _require(po: PurchaseOrder, event: POEvent) -> POStatus:
        target = next_status(po.status, event)
        if target is None:
            raise InvalidTransition(po.id, po.status.value, event.value)
        return target

    def _save(
        self,
        po: PurchaseOrder,
        _event: Optional[POEvent] = None,
        _actor: str = "system",
        **updates,
    ) -> PurchaseOrder:
        now = _now_iso()
        updates["version"] = po.version + 1
        updates["updated_at"] = now
        target = updates.get("status")
        if target is not None and target != po.status:
            updates["history"] = [*po.history, StatusChange(
                from_status=po.status,
                to_status=target,
                event=_event.value if _event else "update",
                actor=_actor,
                at=now,
            )]
        updated = po.model_copy(update=updates)
        self.store.purchase_orders[po.id] = updated
        return updated
