"""
SQLAlchemy ORM persistence models for the Purchasing module.

Responsibility
--------------
Provide database-backed persistence for suppliers, products, purchase
orders with their lines, and goods receipts with their lines.

Architecture position
---------------------
**Modules layer** -- ORM models consumed by ``PurchasingService`` for
persistence. Inherits from ``TrackedBase`` (kernel db layer).

Invariants enforced
-------------------
* All monetary fields use ``Decimal`` (Numeric(38,9)) -- NEVER float.
* Status stored as String(50) enum value.
* ``(order_id, product_id, color_id, size_id)`` is unique on order lines,
  the persisted form of "one line per variant".
* Goods receipts and receipt lines are immutable once flushed (see
  ``supply_kernel.db.immutability``).
* Supplier and product references are codes (``String(100)``); the
  product list of a supplier and the color/size sets of a product are
  stored as JSON text.
"""

import json
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from supply_kernel.db.base import TrackedBase
from supply_kernel.domain.line_items import GoodsReceiptLineItem, OrderLineItem


def _dump_codes(codes) -> str:
    return json.dumps([str(c) for c in codes])


def _load_codes(text: str | None) -> tuple[str, ...]:
    if not text:
        return ()
    return tuple(str(c) for c in json.loads(text))


# ---------------------------------------------------------------------------
# SupplierModel
# ---------------------------------------------------------------------------


class SupplierModel(TrackedBase):
    """
    A supplier and the product codes it supplies.

    Maps to the ``Supplier`` DTO; ``code`` is the DTO's ``id``.
    """

    __tablename__ = "purchasing_suppliers"

    __table_args__ = (
        UniqueConstraint("code", name="uq_purchasing_supplier_code"),
    )

    code: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_person: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    product_codes_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self):
        from supply_modules.purchasing.models import Supplier

        return Supplier(
            id=self.code,
            name=self.name,
            contact_person=self.contact_person,
            phone=self.phone,
            email=self.email,
            address=self.address,
            product_ids=_load_codes(self.product_codes_json),
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "SupplierModel":
        return cls(
            code=str(dto.id),
            name=dto.name,
            contact_person=dto.contact_person,
            phone=dto.phone,
            email=dto.email,
            address=dto.address,
            product_codes_json=_dump_codes(dto.product_ids),
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<SupplierModel {self.code}>"


# ---------------------------------------------------------------------------
# ProductModel
# ---------------------------------------------------------------------------


class ProductModel(TrackedBase):
    """A product with its reference price and available colors/sizes."""

    __tablename__ = "purchasing_products"

    __table_args__ = (
        UniqueConstraint("code", name="uq_purchasing_product_code"),
    )

    code: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    color_codes_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    size_codes_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self):
        from supply_modules.purchasing.models import Product

        return Product(
            id=self.code,
            name=self.name,
            unit_price=self.unit_price,
            color_ids=_load_codes(self.color_codes_json),
            size_ids=_load_codes(self.size_codes_json),
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "ProductModel":
        return cls(
            code=str(dto.id),
            name=dto.name,
            unit_price=dto.unit_price,
            color_codes_json=_dump_codes(dto.color_ids),
            size_codes_json=_dump_codes(dto.size_ids),
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<ProductModel {self.code}>"


# ---------------------------------------------------------------------------
# PurchaseOrderModel
# ---------------------------------------------------------------------------


class PurchaseOrderModel(TrackedBase):
    """
    A purchase order.

    Maps to the ``PurchaseOrder`` DTO in ``supply_modules.purchasing.models``.

    Guarantees:
        - ``status`` follows the purchase order workflow.
        - Lines are owned by the order (cascade delete-orphan) and ordered
          by ``position``.
    """

    __tablename__ = "purchasing_orders"

    __table_args__ = (
        Index("idx_purchasing_order_supplier", "supplier_code"),
        Index("idx_purchasing_order_status", "status"),
        Index("idx_purchasing_order_date", "order_date"),
    )

    supplier_code: Mapped[str] = mapped_column(String(100), nullable=False)
    order_date: Mapped[date] = mapped_column(Date, nullable=False)
    expected_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    lines: Mapped[list["OrderLineModel"]] = relationship(
        "OrderLineModel",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderLineModel.position",
    )

    receipts: Mapped[list["GoodsReceiptModel"]] = relationship(
        "GoodsReceiptModel",
        back_populates="order",
        lazy="select",
        order_by="GoodsReceiptModel.receipt_date",
    )

    @property
    def total_amount(self) -> Decimal:
        return sum((line.quantity * line.unit_price for line in self.lines), Decimal("0"))

    def to_dto(self):
        from supply_modules.purchasing.models import OrderStatus, PurchaseOrder

        return PurchaseOrder(
            id=self.id,
            supplier_id=self.supplier_code,
            order_date=self.order_date,
            status=OrderStatus(self.status),
            expected_delivery_date=self.expected_delivery_date,
            notes=self.notes,
            created_by=self.created_by_id,
            lines=tuple(line.to_line_item() for line in self.lines),
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "PurchaseOrderModel":
        from supply_modules.purchasing.models import OrderStatus

        model = cls(
            id=dto.id,
            supplier_code=dto.supplier_id,
            order_date=dto.order_date,
            expected_delivery_date=dto.expected_delivery_date,
            status=dto.status.value if isinstance(dto.status, OrderStatus) else dto.status,
            notes=dto.notes,
            created_by_id=created_by_id,
        )
        model.lines = [
            OrderLineModel.from_line_item(item, position, created_by_id)
            for position, item in enumerate(dto.lines)
        ]
        return model

    def __repr__(self) -> str:
        return f"<PurchaseOrderModel {self.id} [{self.status}]>"


# ---------------------------------------------------------------------------
# OrderLineModel
# ---------------------------------------------------------------------------


class OrderLineModel(TrackedBase):
    """One (product, color, size) line on a purchase order."""

    __tablename__ = "purchasing_order_lines"

    __table_args__ = (
        UniqueConstraint(
            "order_id", "product_id", "color_id", "size_id",
            name="uq_purchasing_order_line_variant",
        ),
        Index("idx_purchasing_order_line_order", "order_id"),
    )

    order_id: Mapped[UUID] = mapped_column(ForeignKey("purchasing_orders.id"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    product_id: Mapped[str] = mapped_column(String(100), nullable=False)
    color_id: Mapped[str] = mapped_column(String(100), nullable=False)
    size_id: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)

    order: Mapped[PurchaseOrderModel] = relationship(
        "PurchaseOrderModel", back_populates="lines",
    )

    def to_line_item(self) -> OrderLineItem:
        return OrderLineItem.of(
            self.product_id, self.color_id, self.size_id,
            self.quantity, self.unit_price,
        )

    def apply(self, item: OrderLineItem) -> None:
        """Overwrite this row with ``item`` (line edit while draft)."""
        self.product_id = item.key.product_id
        self.color_id = item.key.color_id
        self.size_id = item.key.size_id
        self.quantity = item.quantity
        self.unit_price = item.unit_price

    @classmethod
    def from_line_item(
        cls, item: OrderLineItem, position: int, created_by_id: UUID,
    ) -> "OrderLineModel":
        return cls(
            position=position,
            product_id=item.key.product_id,
            color_id=item.key.color_id,
            size_id=item.key.size_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return (
            f"<OrderLineModel {self.product_id}/{self.color_id}/{self.size_id} "
            f"x{self.quantity}>"
        )


# ---------------------------------------------------------------------------
# GoodsReceiptModel
# ---------------------------------------------------------------------------


class GoodsReceiptModel(TrackedBase):
    """
    A goods receipt recorded against a purchase order.

    Guarantees:
        - Immutable after flush (UPDATE/DELETE blocked by ORM listeners).
        - ``total_value`` is the exact sum of its lines' received value.
    """

    __tablename__ = "purchasing_goods_receipts"

    __table_args__ = (
        Index("idx_purchasing_receipt_order", "order_id"),
        Index("idx_purchasing_receipt_date", "receipt_date"),
    )

    order_id: Mapped[UUID] = mapped_column(ForeignKey("purchasing_orders.id"), nullable=False)
    receipt_date: Mapped[date] = mapped_column(Date, nullable=False)
    received_by: Mapped[str] = mapped_column(String(255), nullable=False)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    total_value: Mapped[Decimal] = mapped_column(default=Decimal("0"))

    order: Mapped[PurchaseOrderModel] = relationship(
        "PurchaseOrderModel", back_populates="receipts",
    )
    lines: Mapped[list["GoodsReceiptLineModel"]] = relationship(
        "GoodsReceiptLineModel",
        back_populates="receipt",
        lazy="selectin",
        order_by="GoodsReceiptLineModel.position",
    )

    def to_dto(self):
        from supply_modules.purchasing.models import GoodsReceipt

        return GoodsReceipt(
            id=self.id,
            order_id=self.order_id,
            receipt_date=self.receipt_date,
            received_by=self.received_by,
            notes=self.notes,
            lines=tuple(line.to_line_item() for line in self.lines),
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "GoodsReceiptModel":
        model = cls(
            id=dto.id,
            order_id=dto.order_id,
            receipt_date=dto.receipt_date,
            received_by=dto.received_by,
            notes=dto.notes,
            total_value=dto.total_received_value,
            created_by_id=created_by_id,
        )
        model.lines = [
            GoodsReceiptLineModel.from_line_item(item, position, created_by_id)
            for position, item in enumerate(dto.lines)
        ]
        return model

    def __repr__(self) -> str:
        return f"<GoodsReceiptModel {self.id} order={self.order_id}>"


# ---------------------------------------------------------------------------
# GoodsReceiptLineModel
# ---------------------------------------------------------------------------


class GoodsReceiptLineModel(TrackedBase):
    """One received (product, color, size) line on a goods receipt."""

    __tablename__ = "purchasing_goods_receipt_lines"

    __table_args__ = (
        UniqueConstraint(
            "receipt_id", "product_id", "color_id", "size_id",
            name="uq_purchasing_receipt_line_variant",
        ),
        Index("idx_purchasing_receipt_line_receipt", "receipt_id"),
    )

    receipt_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchasing_goods_receipts.id"), nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    product_id: Mapped[str] = mapped_column(String(100), nullable=False)
    color_id: Mapped[str] = mapped_column(String(100), nullable=False)
    size_id: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    condition: Mapped[str] = mapped_column(String(20), nullable=False, default="good")
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    receipt: Mapped[GoodsReceiptModel] = relationship(
        "GoodsReceiptModel", back_populates="lines",
    )

    def to_line_item(self) -> GoodsReceiptLineItem:
        return GoodsReceiptLineItem.of(
            self.product_id, self.color_id, self.size_id,
            self.quantity, self.unit_price, self.condition, self.notes,
        )

    @classmethod
    def from_line_item(
        cls, item: GoodsReceiptLineItem, position: int, created_by_id: UUID,
    ) -> "GoodsReceiptLineModel":
        return cls(
            position=position,
            product_id=item.key.product_id,
            color_id=item.key.color_id,
            size_id=item.key.size_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            condition=item.condition.value,
            notes=item.notes,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return (
            f"<GoodsReceiptLineModel {self.product_id}/{self.color_id}/{self.size_id} "
            f"x{self.quantity}>"
        )
