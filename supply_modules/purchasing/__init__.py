"""
Purchasing Module.

Handles the supplier procurement cycle:
- Supplier and product reference data
- Purchase orders and their (product, color, size) lines
- Goods receipts with cumulative reconciliation
- Order and receipt dashboard statistics

Lifecycle: draft -> sent -> confirmed -> partially_received -> completed,
with cancellation from draft or sent.
"""

from supply_modules.purchasing.config import PurchasingConfig
from supply_modules.purchasing.models import (
    GoodsReceipt,
    OrderStatus,
    Product,
    PurchaseOrder,
    PurchaseOrderStats,
    ReceiptRecorded,
    ReceiptStats,
    STATUS_CODES,
    Supplier,
)
from supply_modules.purchasing.service import PurchasingService
from supply_modules.purchasing.suppliers import SupplierIndex
from supply_modules.purchasing.workflows import (
    PURCHASE_ORDER_WORKFLOW,
    OrderStateMachine,
    purchasing_guard_executor,
)

__all__ = [
    "PurchasingConfig",
    "GoodsReceipt",
    "OrderStatus",
    "Product",
    "PurchaseOrder",
    "PurchaseOrderStats",
    "ReceiptRecorded",
    "ReceiptStats",
    "STATUS_CODES",
    "Supplier",
    "PurchasingService",
    "SupplierIndex",
    "PURCHASE_ORDER_WORKFLOW",
    "OrderStateMachine",
    "purchasing_guard_executor",
]
