"""
Read-only views for the dashboard: per-item delivery tracking and the
headline purchase order / stock figures.
"""
from typing import Optional

from models.material import StockStatus
from models.purchase_order import POStatus, PurchaseOrder
from .store import InMemoryStore


def delivery_tracking(po: PurchaseOrder) -> list[dict]:
    """One row per PO item, as shown on the delivery tracking table."""
    rows = []
    for item in po.items:
        progress = round(item.delivered_quantity / item.quantity * 100) if item.quantity else 100
        rows.append({
            "item_id":            item.id,
            "material_id":        item.material_id,
            "material_name":      item.material_name,
            "unit":               item.unit,
            "ordered_quantity":   item.quantity,
            "delivered_quantity": item.delivered_quantity,
            "remaining_quantity": item.remaining_quantity,
            "progress_pct":       progress,
            "delivery_status":    item.delivery_status,
            "quality_accepted":   item.quality_accepted,
            "grn_number":         item.grn_number,
            "inspection_notes":   item.inspection_notes,
        })
    return rows


def dashboard_stats(store: InMemoryStore, currency: Optional[str] = None) -> dict:
    """
    Aggregate counts for the dashboard header cards.

    total_value sums every PO that is not rejected or cancelled; when
    currency is given, only POs in that currency are summed.
    """
    orders = store.snapshot("purchase_orders")
    by_status = {status.value: 0 for status in POStatus}
    for po in orders:
        by_status[po.status.value] += 1

    live = [
        po for po in orders
        if po.status not in (POStatus.REJECTED, POStatus.CANCELLED)
        and (currency is None or po.currency == currency)
    ]
    materials = store.snapshot("materials")
    return {
        "total_purchase_orders": len(orders),
        "by_status":             by_status,
        "pending_approval":      by_status[POStatus.PENDING.value],
        "awaiting_delivery":     by_status[POStatus.ACKNOWLEDGED.value] + by_status[POStatus.SENT.value],
        "total_value":           round(sum(po.total_amount for po in live), 2),
        "materials":             len(materials),
        "low_stock_materials":   sum(1 for m in materials if m.status == StockStatus.LOW_STOCK),
        "out_of_stock_materials": sum(1 for m in materials if m.status == StockStatus.OUT_OF_STOCK),
    }
