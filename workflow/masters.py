"""
Master-data loading.

Seeds an InMemoryStore from two CSV files:
  - suppliers.csv       (supplier master)
  - raw_materials.csv   (raw material master with opening stock)

A missing file is not an error: the corresponding master simply starts
empty and a warning is logged.  A malformed row is skipped with a warning
so one bad line does not stop the plant from loading the rest.
"""
import csv
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from models.material import RawMaterial, stock_status_for
from models.supplier import ContactPerson, Supplier
from .store import InMemoryStore

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def _to_float(value: Optional[str], default: float = 0.0) -> float:
    value = (value or "").strip().replace(",", "")
    if not value:
        return default
    return float(value)


def _parse_contacts(raw: Optional[str]) -> list[ContactPerson]:
    """
    contact_persons: pipe-separated "name:phone" pairs,
    e.g. "Rajesh Kumar:+91 9876543211|Priya Sharma:+91 9876543212"
    """
    contacts = []
    for chunk in (raw or "").split("|"):
        chunk = chunk.strip()
        if not chunk:
            continue
        name, _, phone = chunk.partition(":")
        contacts.append(ContactPerson(name=name.strip(), phone=_clean(phone)))
    return contacts


def _parse_specifications(raw: Optional[str]) -> dict[str, str]:
    """specifications: a JSON object, e.g. {"grade": "5-Ply", "color": "Brown"}"""
    raw = (raw or "").strip()
    if not raw:
        return {}
    parsed = json.loads(raw)
    return {str(k): str(v) for k, v in parsed.items()}


def load_suppliers(path: str | Path) -> list[Supplier]:
    """
    CSV format (suppliers.csv):
      id, name, email, phone, gst_number, product_type, state, address,
      pin_code, contact_persons, status
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Suppliers CSV not found: %s; supplier master is empty", path)
        return []

    suppliers: list[Supplier] = []
    with open(path, newline="", encoding="utf-8") as f:
        for line_no, row in enumerate(csv.DictReader(f), start=2):
            try:
                suppliers.append(Supplier(
                    id=row["id"].strip(),
                    name=row["name"].strip(),
                    email=_clean(row.get("email")),
                    phone=_clean(row.get("phone")),
                    gst_number=_clean(row.get("gst_number")),
                    product_type=_clean(row.get("product_type")),
                    state=_clean(row.get("state")),
                    address=_clean(row.get("address")),
                    pin_code=_clean(row.get("pin_code")),
                    contact_persons=_parse_contacts(row.get("contact_persons")),
                    status=_clean(row.get("status")) or "Active",
                ))
            except (KeyError, AttributeError, ValidationError) as exc:
                logger.warning("Skipping supplier row %d in %s: %s", line_no, path.name, exc)

    logger.info("Loaded %d suppliers from %s", len(suppliers), path)
    return suppliers


def load_materials(path: str | Path) -> list[RawMaterial]:
    """
    CSV format (raw_materials.csv):
      id, name, product_type, unit, current_stock, minimum_stock, unit_price,
      supplier_id, batch_number, received_date, specifications

    status is never read from the file; it is derived from the stock levels.
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Materials CSV not found: %s; material master is empty", path)
        return []

    materials: list[RawMaterial] = []
    with open(path, newline="", encoding="utf-8") as f:
        for line_no, row in enumerate(csv.DictReader(f), start=2):
            try:
                current = _to_float(row.get("current_stock"))
                minimum = _to_float(row.get("minimum_stock"))
                unit_price = _clean(row.get("unit_price"))
                materials.append(RawMaterial(
                    id=row["id"].strip(),
                    name=row["name"].strip(),
                    product_type=_clean(row.get("product_type")),
                    unit=_clean(row.get("unit")),
                    specifications=_parse_specifications(row.get("specifications")),
                    current_stock=current,
                    minimum_stock=minimum,
                    unit_price=_to_float(unit_price) if unit_price else None,
                    supplier_id=_clean(row.get("supplier_id")),
                    batch_number=_clean(row.get("batch_number")),
                    received_date=_clean(row.get("received_date")),
                    status=stock_status_for(current, minimum),
                ))
            except (KeyError, AttributeError, ValueError) as exc:
                # ValueError covers float(), json.loads() and pydantic ValidationError
                logger.warning("Skipping material row %d in %s: %s", line_no, path.name, exc)

    logger.info("Loaded %d raw materials from %s", len(materials), path)
    return materials


def seed_store(
    store: InMemoryStore,
    suppliers_csv: str | Path,
    materials_csv: str | Path,
) -> InMemoryStore:
    """Load both masters into store, replacing entries with the same id."""
    suppliers = load_suppliers(suppliers_csv)
    materials = load_materials(materials_csv)
    with store.transaction():
        for supplier in suppliers:
            store.suppliers[supplier.id] = supplier
        for material in materials:
            if material.supplier_id and material.supplier_id not in store.suppliers:
                logger.warning(
                    "Material %s references unknown supplier %s",
                    material.id, material.supplier_id,
                )
            store.materials[material.id] = material
    return store
