from .errors import (
    InvalidQuantity,
    InvalidTransition,
    ItemNotFound,
    MaterialNotFound,
    PurchaseOrderNotFound,
    QuantityExceeded,
    SupplierNotFound,
    WorkflowError,
)
from .inventory import MaterialService, MovementLog, StockService, SupplierService
from .masters import load_materials, load_suppliers, seed_store
from .purchase_orders import PurchaseOrderWorkflow
from .reporting import dashboard_stats, delivery_tracking
from .store import InMemoryStore
from .transitions import POEvent, available_events, next_status

__all__ = [
    "InvalidQuantity", "InvalidTransition", "ItemNotFound", "MaterialNotFound",
    "PurchaseOrderNotFound", "QuantityExceeded", "SupplierNotFound", "WorkflowError",
    "MaterialService", "MovementLog", "StockService", "SupplierService",
    "load_materials", "load_suppliers", "seed_store",
    "PurchaseOrderWorkflow",
    "dashboard_stats", "delivery_tracking",
    "InMemoryStore",
    "POEvent", "available_events", "next_status",
]
