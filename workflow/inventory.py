"""
Master-data services: suppliers, raw materials and the stock movement ledger.

These are thin accessors over the injected InMemoryStore.  They generate ids
("SUP001", "RM001", "SM001"), keep a material's stock status in step with its
stock level, and guarantee that stock movements are only ever appended.
"""
import logging
import math
import re
from datetime import date, timedelta
from typing import Iterable, List, Optional

from models.material import RawMaterial, stock_status_for
from models.stock_movement import MovementType, StockMovement
from models.supplier import Supplier
from .errors import InvalidQuantity, MaterialNotFound, SupplierNotFound
from .store import InMemoryStore

logger = logging.getLogger(__name__)


def next_sequential_id(prefix: str, existing: Iterable[str], width: int = 3) -> str:
    """
    Return prefix + the next free number, e.g. "RM004" after RM001..RM003.

    Ids that do not follow the prefix pattern (hand-entered ids in the CSV
    masters) are ignored when working out the next number.
    """
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    highest = 0
    for key in existing:
        m = pattern.match(key)
        if m:
            highest = max(highest, int(m.group(1)))
    return f"{prefix}{highest + 1:0{width}d}"


class SupplierService:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def list(self, status: Optional[str] = None) -> List[Supplier]:
        suppliers = self.store.snapshot("suppliers")
        if status:
            suppliers = [s for s in suppliers if s.status == status]
        return suppliers

    def find(self, supplier_id: str) -> Optional[Supplier]:
        return self.store.suppliers.get(supplier_id)

    def get(self, supplier_id: str) -> Supplier:
        supplier = self.find(supplier_id)
        if supplier is None:
            raise SupplierNotFound(supplier_id)
        return supplier

    def by_product_type(self, product_type: str) -> List[Supplier]:
        return [s for s in self.store.snapshot("suppliers") if s.product_type == product_type]

    def add(self, **fields) -> Supplier:
        with self.store.transaction():
            supplier_id = fields.pop("id", None) or next_sequential_id("SUP", self.store.suppliers)
            supplier = Supplier(id=supplier_id, **fields)
            self.store.suppliers[supplier.id] = supplier
        logger.info("Supplier added: %s (%s)", supplier.id, supplier.name)
        return supplier

    def update(self, supplier_id: str, **updates) -> Supplier:
        updates.pop("id", None)
        with self.store.transaction():
            current = self.get(supplier_id)
            supplier = Supplier.model_validate({**current.model_dump(), **updates})
            self.store.suppliers[supplier_id] = supplier
        logger.info("Supplier updated: %s  fields=%s", supplier_id, sorted(updates))
        return supplier


class MaterialService:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def list(self) -> List[RawMaterial]:
        return self.store.snapshot("materials")

    def find(self, material_id: str) -> Optional[RawMaterial]:
        return self.store.materials.get(material_id)

    def get(self, material_id: str) -> RawMaterial:
        material = self.find(material_id)
        if material is None:
            raise MaterialNotFound(material_id)
        return material

    def by_supplier(self, supplier_id: str) -> List[RawMaterial]:
        return [m for m in self.store.snapshot("materials") if m.supplier_id == supplier_id]

    def low_stock(self) -> List[RawMaterial]:
        """Materials at or below their minimum stock, including those that are out."""
        return [m for m in self.store.snapshot("materials") if m.current_stock <= m.minimum_stock]

    def add(self, **fields) -> RawMaterial:
        fields.pop("status", None)
        with self.store.transaction():
            material_id = fields.pop("id", None) or next_sequential_id("RM", self.store.materials)
            material = RawMaterial(id=material_id, **fields)
            material = material.model_copy(
                update={"status": stock_status_for(material.current_stock, material.minimum_stock)}
            )
            self.store.materials[material.id] = material
        logger.info("Material added: %s (%s)", material.id, material.name)
        return material

    def update(self, material_id: str, **updates) -> RawMaterial:
        """Update master fields; status is always re-derived, never taken from updates."""
        updates.pop("id", None)
        updates.pop("status", None)
        with self.store.transaction():
            current = self.get(material_id)
            merged = {**current.model_dump(), **updates}
            merged["status"] = stock_status_for(merged["current_stock"], merged["minimum_stock"])
            material = RawMaterial.model_validate(merged)
            self.store.materials[material_id] = material
        logger.info("Material updated: %s  fields=%s", material_id, sorted(updates))
        return material

    def apply_stock_delta(self, material_id: str, quantity: float, direction: MovementType) -> RawMaterial:
        """
        Move stock in or out of a material and recompute its status.

        OUT movements clamp at zero stock rather than going negative.
        """
        if quantity is None or not math.isfinite(quantity) or quantity <= 0:
            raise InvalidQuantity(f"Stock delta must be a positive number, got {quantity}", quantity)
        current = self.get(material_id)
        if MovementType(direction) == MovementType.IN:
            new_stock = current.current_stock + quantity
        else:
            new_stock = max(0.0, current.current_stock - quantity)
        material = current.model_copy(update={
            "current_stock": new_stock,
            "status": stock_status_for(new_stock, current.minimum_stock),
        })
        self.store.materials[material_id] = material
        logger.debug(
            "Stock %s %s %g: %g -> %g (%s)",
            material_id, direction.value if isinstance(direction, MovementType) else direction,
            quantity, current.current_stock, new_stock, material.status.value,
        )
        return material


class MovementLog:
    """Append-only ledger of stock movements."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    def record(self, movement: StockMovement) -> StockMovement:
        """Assign the next SM id and append; returns the stored movement."""
        with self.store.transaction():
            movement_id = next_sequential_id("SM", (m.id for m in self.store.movements if m.id))
            stored = movement.model_copy(update={"id": movement_id})
            self.store.movements.append(stored)
        logger.info(
            "Stock movement %s: %s %g of %s (po=%s job=%s)",
            stored.id, stored.type.value, stored.quantity, stored.material_id,
            stored.po_number, stored.job_id,
        )
        return stored

    def list(self) -> List[StockMovement]:
        return self.store.snapshot("movements")

    def by_material(self, material_id: str) -> List[StockMovement]:
        return [m for m in self.store.snapshot("movements") if m.material_id == material_id]

    def by_po(self, po_number: str) -> List[StockMovement]:
        return [m for m in self.store.snapshot("movements") if m.po_number == po_number]

    def recent(self, days: int = 30, today: Optional[date] = None) -> List[StockMovement]:
        cutoff = ((today or date.today()) - timedelta(days=days)).isoformat()
        return [m for m in self.store.snapshot("movements") if m.date >= cutoff]


class StockService:
    """
    Stock changes that are not purchase order receipts: job-card consumption,
    returns from job workers, manual adjustments.
    """

    def __init__(self, store: InMemoryStore):
        self.store = store
        self.materials = MaterialService(store)
        self.movements = MovementLog(store)

    def record_manual_movement(
        self,
        material_id: str,
        movement_type: MovementType,
        quantity: float,
        reason: str = "Manual Adjustment",
        job_id: Optional[str] = None,
        notes: str = "",
        created_by: str = "system",
        on_date: Optional[date] = None,
    ) -> StockMovement:
        """Apply a stock delta and append the matching movement, atomically."""
        with self.store.transaction():
            self.materials.apply_stock_delta(material_id, quantity, MovementType(movement_type))
            return self.movements.record(StockMovement(
                material_id=material_id,
                type=MovementType(movement_type),
                quantity=quantity,
                reason=reason,
                job_id=job_id,
                date=(on_date or date.today()).isoformat(),
                notes=notes,
                created_by=created_by,
            ))
