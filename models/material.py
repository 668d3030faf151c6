from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class StockStatus(str, Enum):
    IN_STOCK = "In Stock"
    LOW_STOCK = "Low Stock"
    OUT_OF_STOCK = "Out of Stock"


def stock_status_for(current_stock: float, minimum_stock: float) -> StockStatus:
    """Derive the stock status shown against a raw material."""
    if current_stock <= 0:
        return StockStatus.OUT_OF_STOCK
    if current_stock <= minimum_stock:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


class RawMaterial(BaseModel):
    """
    A raw material held in the plant's godown (corrugated sheets, adhesive,
    stitching wire, ...).  status must always agree with stock_status_for().
    """
    id: str                                  # e.g. "RM001"
    name: str
    product_type: Optional[str] = None       # e.g. "Corrugated Sheets"
    unit: Optional[str] = None               # e.g. "Pieces", "KG", "Rolls"
    specifications: Dict[str, str] = Field(default_factory=dict)
    current_stock: float = Field(default=0.0, ge=0)
    minimum_stock: float = Field(default=0.0, ge=0)
    unit_price: Optional[float] = None
    supplier_id: Optional[str] = None
    batch_number: Optional[str] = None
    received_date: Optional[str] = None      # YYYY-MM-DD
    status: StockStatus = StockStatus.OUT_OF_STOCK

    model_config = ConfigDict(frozen=True)
