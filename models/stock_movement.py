from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MovementType(str, Enum):
    IN = "IN"
    OUT = "OUT"


class StockMovement(BaseModel):
    """
    An entry in the append-only stock ledger.
    Exactly one of po_number / job_id normally identifies the cause.
    """
    id: Optional[str] = None                 # Assigned by the movement log, e.g. "SM001"
    material_id: str
    type: MovementType
    quantity: float = Field(gt=0)
    reason: str = ""                         # e.g. "Purchase Order Delivery"
    po_number: Optional[str] = None
    job_id: Optional[str] = None
    date: str                                # YYYY-MM-DD
    notes: str = ""
    created_by: str = "system"

    model_config = ConfigDict(frozen=True)
