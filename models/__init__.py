from .purchase_order import POItem, POItemDraft, POStatus, PurchaseOrder, StatusChange, TERMINAL_STATUSES
from .material import RawMaterial, StockStatus, stock_status_for
from .stock_movement import MovementType, StockMovement
from .supplier import ContactPerson, Supplier

__all__ = [
    "POItem", "POItemDraft", "POStatus", "PurchaseOrder", "StatusChange", "TERMINAL_STATUSES",
    "RawMaterial", "StockStatus", "stock_status_for",
    "MovementType", "StockMovement",
    "ContactPerson", "Supplier",
]
