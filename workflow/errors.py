"""
Exceptions raised by the purchase order workflow and the master-data services.

Every error is a local validation failure, raised synchronously to the
caller.  The store is rolled back before any of them escapes a mutating
call, so a caller that catches one may assume nothing was changed.
"""
from typing import Optional


class WorkflowError(ValueError):
    """Base class for all procurement workflow errors."""


class InvalidTransition(WorkflowError):
    """The event is not legal from the purchase order's current status."""

    def __init__(self, po_id: str, status: str, event: str):
        self.po_id = po_id
        self.status = status
        self.event = event
        super().__init__(f"Cannot {event} purchase order {po_id} while it is {status}")


class QuantityExceeded(WorkflowError):
    """A delivery would take an item's delivered quantity past its ordered quantity."""

    def __init__(self, po_id: str, item_id: str, requested: float, delivered: float, ordered: float):
        self.po_id = po_id
        self.item_id = item_id
        self.requested = requested
        self.delivered = delivered
        self.ordered = ordered
        super().__init__(
            f"Delivery of {requested:g} on {po_id}/{item_id} exceeds ordered quantity "
            f"({delivered:g} of {ordered:g} already delivered)"
        )


class InvalidQuantity(WorkflowError):
    """A quantity or rate is zero, negative, or otherwise unusable."""

    def __init__(self, message: str, value: Optional[float] = None):
        self.value = value
        super().__init__(message)


class ItemNotFound(WorkflowError):
    def __init__(self, po_id: str, item_id: str):
        self.po_id = po_id
        self.item_id = item_id
        super().__init__(f"Item {item_id} does not belong to purchase order {po_id}")


class MaterialNotFound(WorkflowError):
    def __init__(self, material_id: str):
        self.material_id = material_id
        super().__init__(f"Raw material not found: {material_id}")


class SupplierNotFound(WorkflowError):
    def __init__(self, supplier_id: str):
        self.supplier_id = supplier_id
        super().__init__(f"Supplier not found: {supplier_id}")


class PurchaseOrderNotFound(WorkflowError):
    def __init__(self, po_id: str):
        self.po_id = po_id
        super().__init__(f"Purchase order not found: {po_id}")
