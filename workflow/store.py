"""
In-memory repository for suppliers, raw materials, purchase orders and the
stock movement ledger.

The store owns an id -> entity mapping per entity type and is injected into
the services and the workflow; nothing reads module-level state.  Entities
are immutable pydantic models, so every change replaces the stored object
rather than editing it, which is what lets transaction() restore a snapshot
cheaply.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List

from models.material import RawMaterial
from models.purchase_order import PurchaseOrder
from models.stock_movement import StockMovement
from models.supplier import Supplier

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Process-local store with all-or-nothing transactions."""

    def __init__(self) -> None:
        self.suppliers: dict[str, Supplier] = {}
        self.materials: dict[str, RawMaterial] = {}
        self.purchase_orders: dict[str, PurchaseOrder] = {}
        self.movements: list[StockMovement] = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator["InMemoryStore"]:
        """
        Run a block of changes atomically.

        On any exception the suppliers, materials and purchase orders maps
        are restored and movements appended inside the block are discarded,
        then the exception propagates.  Transactions nest.
        """
        with self._lock:
            suppliers = dict(self.suppliers)
            materials = dict(self.materials)
            purchase_orders = dict(self.purchase_orders)
            movement_count = len(self.movements)
            try:
                yield self
            except Exception:
                self.suppliers = suppliers
                self.materials = materials
                self.purchase_orders = purchase_orders
                del self.movements[movement_count:]
                logger.debug("Store transaction rolled back")
                raise

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self, collection: str) -> List:
        """
        Copy one collection ("suppliers", "materials", "purchase_orders" or
        "movements") into a list while holding the store lock, so readers never
        iterate a map that another request is inserting into.
        """
        with self._lock:
            items = getattr(self, collection)
            return list(items.values() if isinstance(items, dict) else items)

    def counts(self) -> dict[str, int]:
        with self._lock:
            return {
                "suppliers":       len(self.suppliers),
                "materials":       len(self.materials),
                "purchase_orders": len(self.purchase_orders),
                "movements":       len(self.movements),
            }
