from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class POStatus(str, Enum):
    """Lifecycle states of a Purchase Order."""
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    SENT = "sent"
    ACKNOWLEDGED = "acknowledged"
    DELIVERED = "delivered"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({POStatus.DELIVERED, POStatus.REJECTED, POStatus.CANCELLED})


class POItemDraft(BaseModel):
    """A line item as requested by the caller, before it is numbered and priced."""
    material_id: str
    quantity: float
    rate: float
    material_name: Optional[str] = None     # Filled from the material master when omitted
    unit: Optional[str] = None


class POItem(BaseModel):
    """A single line item on a Purchase Order."""
    id: str                                  # e.g. "POI001", unique within its PO
    material_id: str
    material_name: Optional[str] = None
    unit: Optional[str] = None
    quantity: float = Field(gt=0)
    rate: float = Field(gt=0)
    total: float                             # quantity * rate
    delivered_quantity: float = Field(default=0.0, ge=0)
    quality_accepted: Optional[bool] = None  # None until the first receipt is inspected
    grn_number: Optional[str] = None         # Goods Receipt Note of the latest receipt
    inspection_notes: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def remaining_quantity(self) -> float:
        return max(self.quantity - self.delivered_quantity, 0.0)

    @property
    def is_complete(self) -> bool:
        return self.quantity <= 0 or self.delivered_quantity >= self.quantity

    @property
    def delivery_status(self) -> str:
        """pending / partial / completed, as shown on the delivery tracking screen."""
        if self.is_complete:
            return "completed"
        if self.delivered_quantity > 0:
            return "partial"
        return "pending"


class StatusChange(BaseModel):
    """One entry of a PO's audit trail."""
    from_status: Optional[POStatus] = None   # None for the creation entry
    to_status: POStatus
    event: str                               # e.g. "create", "submit", "record_delivery"
    actor: str = "system"
    at: str                                  # ISO 8601 datetime (UTC)

    model_config = ConfigDict(frozen=True)


class PurchaseOrder(BaseModel):
    """
    A Purchase Order raised against a supplier.

    status is only ever changed by the workflow; total_amount is derived from
    the item totals when the order is created or edited as a draft.
    """
    id: str                                  # e.g. "PO-202406-0001"
    supplier_id: str
    supplier_name: Optional[str] = None
    status: POStatus = POStatus.DRAFT
    items: List[POItem] = Field(default_factory=list)
    total_amount: float = 0.0
    currency: str = "INR"
    requested_by: Optional[str] = None
    approved_by: Optional[str] = None
    expected_delivery: Optional[str] = None  # YYYY-MM-DD
    terms: Optional[str] = None              # e.g. "Net 30 days payment terms"
    notes: Optional[str] = None
    created_at: str
    updated_at: str
    version: int = 1
    history: List[StatusChange] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def get_item(self, item_id: str) -> Optional[POItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    @property
    def is_fully_delivered(self) -> bool:
        return all(item.is_complete for item in self.items)
