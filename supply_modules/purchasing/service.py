"""
Purchasing Module Service (``supply_modules.purchasing.service``).

Responsibility
--------------
Orchestrates purchasing operations -- reference data registration, purchase
order creation and line editing, order status transitions, goods receipt
recording with cumulative reconciliation, and dashboard statistics -- by
delegating decisions to ``supply_engines`` and persistence to the ORM
models in ``supply_modules.purchasing.orm``.

Architecture position
---------------------
**Modules layer** -- thin glue. ``PurchasingService`` is the sole public
entry point for purchasing operations. It composes the stateless
``OrderStateMachine`` and ``ReceiptReconciler``.

Invariants enforced
-------------------
* Each public write method owns the transaction boundary (``commit`` on
  success, ``rollback`` on failure or exception).
* Line edits only while the order is ``draft``.
* Receipts only against ``confirmed`` / ``partially_received`` orders.
* Reconciliation reads the complete receipt history inside the same
  transaction that writes the new receipt and the resulting status.
* Every status change goes through the state machine.

Failure modes
-------------
* Validation or decision failure -> ``Outcome`` with the typed error;
  session rolled back.
* Unexpected exception -> session rolled back, exception re-raised.

Usage::

    service = PurchasingService(session, clock=clock)
    created = service.create_order(
        supplier_id="SUP-1",
        lines=[{"product_id": "P1", "color_id": "RED", "size_id": "M",
                "quantity": 10, "unit_price": "25.00"}],
        actor_id=actor_id,
    )
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from supply_engines.reconciliation import ReceiptReconciler
from supply_kernel.domain.clock import Clock, SystemClock
from supply_kernel.domain.intervals import validate_strictly_after
from supply_kernel.domain.line_items import (
    GoodsReceiptLineItem,
    LineItemDraft,
    LineItemSet,
    OrderLineItem,
    ReceiptCondition,
    VariantKey,
)
from supply_kernel.domain.outcome import Outcome
from supply_kernel.domain.values import ZERO
from supply_kernel.exceptions import (
    IncompleteVariantError,
    InvalidConditionError,
    InvalidQuantityError,
    InvalidTransitionError,
    OrderNotEditableError,
    OrderNotFoundError,
    ReceiptNotAllowedError,
    SupplyKernelError,
    UnknownProductError,
    UnknownSupplierError,
)
from supply_kernel.logging_config import LogContext, get_logger
from supply_modules.purchasing.config import PurchasingConfig
from supply_modules.purchasing.models import (
    GoodsReceipt,
    OrderStatus,
    Product,
    PurchaseOrder,
    PurchaseOrderStats,
    ReceiptRecorded,
    ReceiptStats,
    RECEIVABLE_STATUSES,
    Supplier,
)
from supply_modules.purchasing.orm import (
    GoodsReceiptModel,
    OrderLineModel,
    ProductModel,
    PurchaseOrderModel,
    SupplierModel,
)
from supply_modules.purchasing.suppliers import SupplierIndex
from supply_modules.purchasing.workflows import OrderStateMachine

logger = get_logger("modules.purchasing.service")

LineInput = OrderLineItem | LineItemDraft | Mapping[str, Any]


def _order_line(line: LineInput) -> Outcome[OrderLineItem]:
    """Build an OrderLineItem from a line item, a draft or a mapping."""
    if isinstance(line, OrderLineItem):
        return Outcome.success(line)
    if isinstance(line, LineItemDraft):
        return line.to_line_item()
    draft = LineItemDraft(
        product_id=line.get("product_id"),
        color_id=line.get("color_id"),
        size_id=line.get("size_id"),
        quantity=line.get("quantity", 1),
        unit_price=line.get("unit_price", ZERO),
    )
    return draft.to_line_item()


def _receipt_line(
    line: GoodsReceiptLineItem | Mapping[str, Any],
    ordered: LineItemSet[OrderLineItem],
) -> Outcome[GoodsReceiptLineItem]:
    """Build a GoodsReceiptLineItem; a missing price defaults to the order price."""
    if isinstance(line, GoodsReceiptLineItem):
        return Outcome.success(line)
    missing = tuple(
        name for name in ("product", "color", "size")
        if str(line.get(f"{name}_id") or "").strip() == ""
    )
    if missing:
        return Outcome.failure(IncompleteVariantError(line.get("product_id"), missing))
    condition = line.get("condition", ReceiptCondition.GOOD)
    if condition not in {c.value for c in ReceiptCondition}:
        return Outcome.failure(
            InvalidConditionError(condition, tuple(c.value for c in ReceiptCondition))
        )
    key = VariantKey(line["product_id"], line["color_id"], line["size_id"])
    unit_price = line.get("unit_price")
    if unit_price is None:
        ordered_line = ordered.get(key)
        unit_price = ordered_line.unit_price if ordered_line is not None else ZERO
    try:
        item = GoodsReceiptLineItem(
            key, line.get("quantity", 0), unit_price, condition, line.get("notes"),
        )
    except SupplyKernelError as exc:
        return Outcome.failure(exc)
    return Outcome.success(item)


def _coerce_status(status: OrderStatus | str | int) -> OrderStatus | None:
    """OrderStatus from a member, its value or a numeric code; None if unknown."""
    if isinstance(status, int) and not isinstance(status, bool):
        return OrderStatus.from_code(status)
    try:
        return OrderStatus(status)
    except ValueError:
        return None


def _same_month(day: date, today: date) -> bool:
    return day.year == today.year and day.month == today.month


class PurchasingService:
    """
    Orchestrates purchasing operations through engines and the ORM.

    Contract
    --------
    * Every write method returns an ``Outcome``; callers inspect ``ok``.
    * Read helpers return DTOs from ``supply_modules.purchasing.models``.

    Guarantees
    ----------
    * Session is committed only on success; otherwise rolled back.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT render or transport anything; callers own presentation.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: PurchasingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or PurchasingConfig.with_defaults()
        self._machine = OrderStateMachine()
        self._reconciler = ReceiptReconciler()

    # =========================================================================
    # Reference data
    # =========================================================================

    def register_supplier(self, supplier: Supplier, actor_id: UUID) -> Outcome[Supplier]:
        """Register a supplier. Re-registering a known code returns the stored one."""
        try:
            existing = self._supplier_model(supplier.id)
            if existing is not None:
                logger.info("supplier_already_registered", extra={"supplier_id": supplier.id})
                return Outcome.success(existing.to_dto())
            model = SupplierModel.from_dto(supplier, created_by_id=actor_id)
            self._session.add(model)
            self._session.commit()
            logger.info(
                "supplier_registered",
                extra={"supplier_id": supplier.id, "product_count": len(supplier.product_ids)},
            )
            return Outcome.success(model.to_dto())
        except Exception:
            self._session.rollback()
            raise

    def register_product(self, product: Product, actor_id: UUID) -> Outcome[Product]:
        """Register a product. Re-registering a known code returns the stored one."""
        try:
            existing = self._product_model(product.id)
            if existing is not None:
                logger.info("product_already_registered", extra={"product_id": product.id})
                return Outcome.success(existing.to_dto())
            model = ProductModel.from_dto(product, created_by_id=actor_id)
            self._session.add(model)
            self._session.commit()
            logger.info("product_registered", extra={"product_id": product.id})
            return Outcome.success(model.to_dto())
        except Exception:
            self._session.rollback()
            raise

    def get_supplier(self, supplier_id: str) -> Supplier | None:
        model = self._supplier_model(supplier_id)
        return model.to_dto() if model is not None else None

    def get_product(self, product_id: str) -> Product | None:
        model = self._product_model(product_id)
        return model.to_dto() if model is not None else None

    def supplier_index(self) -> SupplierIndex:
        """Index over all suppliers, earliest registered first."""
        models = self._session.scalars(
            select(SupplierModel).order_by(SupplierModel.created_at, SupplierModel.code)
        ).all()
        return SupplierIndex(m.to_dto() for m in models)

    # =========================================================================
    # Purchase orders
    # =========================================================================

    def create_order(
        self,
        supplier_id: str,
        lines: Sequence[LineInput],
        actor_id: UUID,
        expected_delivery_date: date | None = None,
        notes: str | None = None,
        order_date: date | None = None,
        order_id: UUID | None = None,
    ) -> Outcome[PurchaseOrder]:
        """Create a draft purchase order."""
        order_id = order_id or uuid4()
        order_date = order_date or self._clock.today()
        with LogContext.bind(order_id=order_id, actor_id=actor_id):
            try:
                logger.info(
                    "purchase_order_create_started",
                    extra={"supplier_id": supplier_id, "line_count": len(lines)},
                )
                error = validate_strictly_after(order_date, expected_delivery_date)
                if error is None and self._config.require_known_supplier:
                    if self._supplier_model(supplier_id) is None:
                        error = UnknownSupplierError(str(supplier_id))
                line_set = None
                if error is None:
                    built = self._build_line_set(lines)
                    error = built.error
                    line_set = built.value
                if error is None:
                    error = self._check_products(line_set)
                if error is not None:
                    return self._fail("purchase_order_create_rejected", error)

                order = PurchaseOrder(
                    id=order_id,
                    supplier_id=str(supplier_id),
                    order_date=order_date,
                    status=OrderStatus.DRAFT,
                    expected_delivery_date=expected_delivery_date,
                    notes=notes,
                    created_by=actor_id,
                    lines=line_set.items(),
                )
                model = PurchaseOrderModel.from_dto(order, created_by_id=actor_id)
                self._session.add(model)
                self._session.commit()
                logger.info(
                    "purchase_order_created",
                    extra={
                        "supplier_id": supplier_id,
                        "line_count": len(order.lines),
                        "total_amount": order.total_amount,
                    },
                )
                return Outcome.success(model.to_dto())
            except Exception:
                self._session.rollback()
                raise

    def get_order(self, order_id: UUID) -> Outcome[PurchaseOrder]:
        model = self._session.get(PurchaseOrderModel, order_id)
        if model is None:
            return Outcome.failure(OrderNotFoundError(str(order_id)))
        return Outcome.success(model.to_dto())

    def list_orders(
        self,
        status: OrderStatus | str | None = None,
        search: str | None = None,
    ) -> list[PurchaseOrder]:
        """Orders newest first, optionally filtered by status and free text.

        ``search`` matches the supplier code, the supplier name or the notes,
        case-insensitively.
        """
        stmt = select(PurchaseOrderModel)
        if status is not None:
            target = _coerce_status(status)
            if target is None:
                logger.info("purchase_order_unknown_status_filter", extra={"status": str(status)})
                return []
            stmt = stmt.where(PurchaseOrderModel.status == target.value)
        if search:
            pattern = f"%{search.strip().lower()}%"
            named = select(SupplierModel.code).where(
                func.lower(SupplierModel.name).like(pattern)
            )
            stmt = stmt.where(
                or_(
                    func.lower(PurchaseOrderModel.supplier_code).like(pattern),
                    func.lower(PurchaseOrderModel.notes).like(pattern),
                    PurchaseOrderModel.supplier_code.in_(named),
                )
            )
        stmt = stmt.order_by(
            PurchaseOrderModel.order_date.desc(), PurchaseOrderModel.created_at.desc(),
        )
        return [m.to_dto() for m in self._session.scalars(stmt).all()]

    # =========================================================================
    # Line editing (draft only)
    # =========================================================================

    def add_line(
        self, order_id: UUID, line: LineInput, actor_id: UUID,
    ) -> Outcome[PurchaseOrder]:
        with LogContext.bind(order_id=order_id, actor_id=actor_id):
            try:
                model, error = self._editable_order(order_id)
                if error is None:
                    built = _order_line(line)
                    error = built.error
                if error is None:
                    line_set = model.to_dto().line_set()
                    error = line_set.add(built.value).error
                if error is None:
                    error = self._check_products([built.value])
                if error is not None:
                    return self._fail("purchase_order_line_rejected", error)

                position = max((row.position for row in model.lines), default=-1) + 1
                model.lines.append(
                    OrderLineModel.from_line_item(built.value, position, actor_id)
                )
                model.updated_by_id = actor_id
                self._session.commit()
                logger.info("purchase_order_line_added", extra={"variant": str(built.value.key)})
                return Outcome.success(model.to_dto())
            except Exception:
                self._session.rollback()
                raise

    def replace_line(
        self,
        order_id: UUID,
        old_key: VariantKey,
        line: LineInput,
        actor_id: UUID,
    ) -> Outcome[PurchaseOrder]:
        """Replace the line at ``old_key``; the new variant must stay unique."""
        with LogContext.bind(order_id=order_id, actor_id=actor_id):
            try:
                model, error = self._editable_order(order_id)
                if error is None:
                    built = _order_line(line)
                    error = built.error
                if error is None:
                    line_set = model.to_dto().line_set()
                    error = line_set.replace(old_key, built.value).error
                if error is None:
                    error = self._check_products([built.value])
                if error is not None:
                    return self._fail("purchase_order_line_rejected", error)

                row = self._line_row(model, old_key)
                if row is None:
                    position = max((r.position for r in model.lines), default=-1) + 1
                    model.lines.append(
                        OrderLineModel.from_line_item(built.value, position, actor_id)
                    )
                else:
                    row.apply(built.value)
                    row.updated_by_id = actor_id
                model.updated_by_id = actor_id
                self._session.commit()
                logger.info(
                    "purchase_order_line_replaced",
                    extra={"old_variant": str(old_key), "variant": str(built.value.key)},
                )
                return Outcome.success(model.to_dto())
            except Exception:
                self._session.rollback()
                raise

    def remove_line(
        self, order_id: UUID, key: VariantKey, actor_id: UUID,
    ) -> Outcome[PurchaseOrder]:
        """Remove the line at ``key``. Removing an absent variant is a no-op."""
        with LogContext.bind(order_id=order_id, actor_id=actor_id):
            try:
                model, error = self._editable_order(order_id)
                if error is not None:
                    return self._fail("purchase_order_line_rejected", error)
                row = self._line_row(model, key)
                if row is not None:
                    model.lines.remove(row)
                    model.updated_by_id = actor_id
                    self._session.commit()
                    logger.info("purchase_order_line_removed", extra={"variant": str(key)})
                return Outcome.success(model.to_dto())
            except Exception:
                self._session.rollback()
                raise

    # =========================================================================
    # Status transitions
    # =========================================================================

    def send_order(self, order_id: UUID, actor_id: UUID) -> Outcome[PurchaseOrder]:
        def context(model: PurchaseOrderModel) -> dict[str, Any]:
            known = (
                self._supplier_model(model.supplier_code) is not None
                if self._config.require_known_supplier
                else True
            )
            return {"line_count": len(model.lines), "supplier_known": known}

        return self._transition(order_id, OrderStatus.SENT, actor_id, context)

    def confirm_order(self, order_id: UUID, actor_id: UUID) -> Outcome[PurchaseOrder]:
        return self._transition(order_id, OrderStatus.CONFIRMED, actor_id)

    def cancel_order(self, order_id: UUID, actor_id: UUID) -> Outcome[PurchaseOrder]:
        return self._transition(order_id, OrderStatus.CANCELLED, actor_id)

    def set_order_status(
        self,
        order_id: UUID,
        status: OrderStatus | str | int,
        actor_id: UUID,
    ) -> Outcome[PurchaseOrder]:
        """
        Persist a status the caller has already decided on.

        ``status`` may be an OrderStatus, its value, or a numeric status
        code. The pair must still be in the transition table; guards are
        the caller's decision.
        """
        with LogContext.bind(order_id=order_id, actor_id=actor_id):
            try:
                model = self._session.get(PurchaseOrderModel, order_id)
                if model is None:
                    return self._fail(
                        "purchase_order_status_rejected", OrderNotFoundError(str(order_id)),
                    )
                target = _coerce_status(status)
                requested = target.value if target is not None else str(status)
                if target is None or self._machine.transition_for(model.status, requested) is None:
                    return self._fail(
                        "purchase_order_status_rejected",
                        InvalidTransitionError(model.status, requested),
                    )
                self._apply_status(model, target, actor_id)
                self._session.commit()
                return Outcome.success(model.to_dto())
            except Exception:
                self._session.rollback()
                raise

    # =========================================================================
    # Goods receipts
    # =========================================================================

    def record_receipt(
        self,
        order_id: UUID,
        lines: Sequence[GoodsReceiptLineItem | Mapping[str, Any]],
        received_by: str,
        actor_id: UUID,
        notes: str | None = None,
        receipt_date: date | None = None,
        receipt_id: UUID | None = None,
    ) -> Outcome[ReceiptRecorded]:
        """
        Record a goods receipt and move the order to the reconciled status.

        The full receipt history is read in this transaction, the new
        receipt is reconciled together with it, and the receipt plus any
        resulting status change are committed together. Over-receipt
        warnings are returned in ``Outcome.warnings``.
        """
        receipt_id = receipt_id or uuid4()
        receipt_date = receipt_date or self._clock.today()
        with LogContext.bind(order_id=order_id, receipt_id=receipt_id, actor_id=actor_id):
            try:
                logger.info("goods_receipt_started", extra={"line_count": len(lines)})
                model = self._session.get(PurchaseOrderModel, order_id)
                if model is None:
                    return self._fail("goods_receipt_rejected", OrderNotFoundError(str(order_id)))
                order = model.to_dto()
                if order.status not in RECEIVABLE_STATUSES:
                    return self._fail(
                        "goods_receipt_rejected",
                        ReceiptNotAllowedError(str(order_id), order.status.value),
                    )

                ordered = order.line_set()
                received = self._build_receipt_set(lines, ordered)
                if not received.ok:
                    return self._fail("goods_receipt_rejected", received.error)

                history = [r.line_set() for r in self.list_receipts_for_order(order_id)]
                reconciled = self._reconciler.reconcile(ordered, history + [received.value])
                if not reconciled.ok:
                    return self._fail("goods_receipt_rejected", reconciled.error)
                if reconciled.warnings and not self._config.allow_over_receipt:
                    return self._fail("goods_receipt_rejected", reconciled.warnings[0])

                result = reconciled.value
                previous = order.status
                recommended = result.recommended_status
                if recommended is not None and recommended != previous.value:
                    decided = self._machine.request(
                        previous.value,
                        recommended,
                        {
                            "any_received": result.received_quantity > 0,
                            "all_received": result.is_complete,
                        },
                    )
                    if not decided.ok:
                        return self._fail("goods_receipt_rejected", decided.error)
                    self._apply_status(model, OrderStatus(decided.value), actor_id)

                receipt = GoodsReceipt(
                    id=receipt_id,
                    order_id=order_id,
                    receipt_date=receipt_date,
                    received_by=received_by,
                    notes=notes,
                    lines=received.value.items(),
                )
                self._session.add(GoodsReceiptModel.from_dto(receipt, created_by_id=actor_id))
                self._session.commit()

                logger.info(
                    "goods_receipt_recorded",
                    extra={
                        "receipt_value": receipt.total_received_value,
                        "receipt_count": result.receipt_count,
                        "previous_status": previous.value,
                        "status": model.status,
                        "warning_count": len(reconciled.warnings),
                    },
                )
                return Outcome.success(
                    ReceiptRecorded(
                        receipt=receipt,
                        order=model.to_dto(),
                        reconciliation=result,
                        previous_status=previous,
                    ),
                    warnings=reconciled.warnings,
                )
            except Exception:
                self._session.rollback()
                raise

    def list_receipts_for_order(self, order_id: UUID) -> list[GoodsReceipt]:
        """Complete receipt history of an order, oldest first."""
        stmt = (
            select(GoodsReceiptModel)
            .where(GoodsReceiptModel.order_id == order_id)
            .order_by(GoodsReceiptModel.receipt_date, GoodsReceiptModel.created_at)
        )
        return [m.to_dto() for m in self._session.scalars(stmt).all()]

    def list_receipts(self) -> list[GoodsReceipt]:
        stmt = select(GoodsReceiptModel).order_by(
            GoodsReceiptModel.receipt_date.desc(), GoodsReceiptModel.created_at.desc(),
        )
        return [m.to_dto() for m in self._session.scalars(stmt).all()]

    def orders_awaiting_receipt(self) -> list[PurchaseOrder]:
        stmt = select(PurchaseOrderModel).where(
            PurchaseOrderModel.status.in_([s.value for s in RECEIVABLE_STATUSES])
        ).order_by(PurchaseOrderModel.order_date)
        return [m.to_dto() for m in self._session.scalars(stmt).all()]

    # =========================================================================
    # Statistics
    # =========================================================================

    def order_stats(self) -> PurchaseOrderStats:
        orders = self.list_orders()
        today = self._clock.today()
        pending = set(self._config.pending_statuses)
        return PurchaseOrderStats(
            total_orders=len(orders),
            draft_orders=sum(1 for o in orders if o.status == OrderStatus.DRAFT),
            pending_orders=sum(1 for o in orders if o.status.value in pending),
            completed_orders=sum(1 for o in orders if o.status == OrderStatus.COMPLETED),
            cancelled_orders=sum(1 for o in orders if o.status == OrderStatus.CANCELLED),
            total_value=sum((o.total_amount for o in orders), ZERO),
            orders_this_month=sum(1 for o in orders if _same_month(o.order_date, today)),
        )

    def receipt_stats(self) -> ReceiptStats:
        receipts = self.list_receipts()
        today = self._clock.today()
        return ReceiptStats(
            total_receipts=len(receipts),
            receipts_this_month=sum(
                1 for r in receipts if _same_month(r.receipt_date, today)
            ),
            total_value=sum((r.total_received_value for r in receipts), ZERO),
            orders_awaiting_receipt=len(self.orders_awaiting_receipt()),
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _fail(self, event: str, error: SupplyKernelError) -> Outcome:
        self._session.rollback()
        logger.info(event, extra={"error_code": error.code, "reason": str(error)})
        return Outcome.failure(error)

    def _supplier_model(self, supplier_id: str) -> SupplierModel | None:
        return self._session.scalars(
            select(SupplierModel).where(SupplierModel.code == str(supplier_id))
        ).first()

    def _product_model(self, product_id: str) -> ProductModel | None:
        return self._session.scalars(
            select(ProductModel).where(ProductModel.code == str(product_id))
        ).first()

    def _build_line_set(self, lines: Iterable[LineInput]) -> Outcome[LineItemSet[OrderLineItem]]:
        items = []
        for line in lines:
            built = _order_line(line)
            if not built.ok:
                return Outcome.failure(built.error)
            items.append(built.value)
        return LineItemSet.from_items(items)

    def _build_receipt_set(
        self,
        lines: Iterable[GoodsReceiptLineItem | Mapping[str, Any]],
        ordered: LineItemSet[OrderLineItem],
    ) -> Outcome[LineItemSet[GoodsReceiptLineItem]]:
        items = []
        for line in lines:
            built = _receipt_line(line, ordered)
            if not built.ok:
                return Outcome.failure(built.error)
            items.append(built.value)
        if not items:
            return Outcome.failure(InvalidQuantityError(0, "a receipt needs at least one line"))
        return LineItemSet.from_items(items)

    def _check_products(self, items: Iterable[OrderLineItem]) -> SupplyKernelError | None:
        if not self._config.require_known_products:
            return None
        for item in items:
            model = self._product_model(item.key.product_id)
            if model is None or not model.to_dto().offers(item.key.color_id, item.key.size_id):
                return UnknownProductError(str(item.key))
        return None

    def _editable_order(
        self, order_id: UUID,
    ) -> tuple[PurchaseOrderModel | None, SupplyKernelError | None]:
        model = self._session.get(PurchaseOrderModel, order_id)
        if model is None:
            return None, OrderNotFoundError(str(order_id))
        if model.status != OrderStatus.DRAFT.value:
            return model, OrderNotEditableError(str(order_id), model.status)
        return model, None

    @staticmethod
    def _line_row(model: PurchaseOrderModel, key: VariantKey) -> OrderLineModel | None:
        for row in model.lines:
            if (row.product_id, row.color_id, row.size_id) == (
                key.product_id, key.color_id, key.size_id,
            ):
                return row
        return None

    def _apply_status(
        self, model: PurchaseOrderModel, status: OrderStatus, actor_id: UUID,
    ) -> None:
        previous = model.status
        model.status = status.value
        model.updated_by_id = actor_id
        logger.info(
            "purchase_order_status_changed",
            extra={"from_status": previous, "to_status": status.value},
        )

    def _transition(
        self,
        order_id: UUID,
        target: OrderStatus,
        actor_id: UUID,
        context_for=None,
    ) -> Outcome[PurchaseOrder]:
        with LogContext.bind(order_id=order_id, actor_id=actor_id):
            try:
                model = self._session.get(PurchaseOrderModel, order_id)
                if model is None:
                    return self._fail(
                        "purchase_order_transition_rejected", OrderNotFoundError(str(order_id)),
                    )
                context = context_for(model) if context_for is not None else None
                decided = self._machine.request(model.status, target.value, context)
                if not decided.ok:
                    return self._fail("purchase_order_transition_rejected", decided.error)
                self._apply_status(model, target, actor_id)
                self._session.commit()
                return Outcome.success(model.to_dto())
            except Exception:
                self._session.rollback()
                raise
