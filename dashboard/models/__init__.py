"""
Pydantic models for dashboard API requests.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from models.purchase_order import POItemDraft
from models.stock_movement import MovementType
from models.supplier import ContactPerson


class SupplierCreate(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    gst_number: Optional[str] = None
    product_type: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None
    pin_code: Optional[str] = None
    contact_persons: List[ContactPerson] = Field(default_factory=list)


class MaterialCreate(BaseModel):
    name: str
    product_type: Optional[str] = None
    unit: Optional[str] = None
    specifications: Dict[str, str] = Field(default_factory=dict)
    current_stock: float = Field(default=0.0, ge=0)
    minimum_stock: float = Field(default=0.0, ge=0)
    unit_price: Optional[float] = None
    supplier_id: Optional[str] = None
    batch_number: Optional[str] = None
    received_date: Optional[str] = None


class StockMovementCreate(BaseModel):
    material_id: str
    type: MovementType
    quantity: float
    reason: str = "Manual Adjustment"
    job_id: Optional[str] = None
    notes: str = ""
    created_by: str = "system"


class PurchaseOrderCreate(BaseModel):
    supplier_id: str
    items: List[POItemDraft]
    requested_by: Optional[str] = None
    expected_delivery: Optional[str] = None
    terms: Optional[str] = None
    notes: Optional[str] = None
    currency: Optional[str] = None


class DraftUpdate(BaseModel):
    items: Optional[List[POItemDraft]] = None
    expected_delivery: Optional[str] = None
    terms: Optional[str] = None
    notes: Optional[str] = None


class EventRequest(BaseModel):
    actor: Optional[str] = None
    approved_by: Optional[str] = None    # required for "approve"


class DeliveryRequest(BaseModel):
    item_id: str
    quantity: float
    quality_accepted: Optional[bool] = None
    grn_number: Optional[str] = None
    inspection_notes: Optional[str] = None
    actor: str = "system"


class MarkDeliveredRequest(BaseModel):
    grn_number: Optional[str] = None
    quality_accepted: Optional[bool] = True
    inspection_notes: Optional[str] = None
    actor: str = "system"
