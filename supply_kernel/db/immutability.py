"""
ORM-Level Immutability Enforcement for recorded goods receipts.

===============================================================================
WHY THIS EXISTS
===============================================================================

A goods receipt is the record of what physically arrived. Reconciliation
re-reads the complete receipt history every time a new receipt is recorded,
so editing or deleting an old receipt would silently change the status the
order should be in. Corrections are made by recording another receipt.

===============================================================================
HOW IT WORKS
===============================================================================

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events:

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |                                                        ^
         v                                                        |
    [before_delete event] --> _check_*_delete() -----------------+
         |
         v
    SQL sent to database (only if checks pass)

If a check fails, ImmutabilityViolationError is raised and the transaction
is aborted. The database is never modified.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                 | When Immutable         | Why
-----------------------|------------------------|---------------------------------
GoodsReceipt           | ALWAYS (from creation) | Reconciliation input history
GoodsReceiptLine       | ALWAYS (from creation) | Lines are part of the receipt

Only column changes count as an update. A flush that touches a receipt's
relationships without changing its columns is allowed.

===============================================================================
USAGE
===============================================================================

Called once at startup, after the ORM models are imported:

    from supply_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect

from supply_kernel.exceptions import ImmutabilityViolationError
from supply_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _changed_columns(mapper, target) -> list[str]:
    state = inspect(target)
    return [
        attr.key
        for attr in mapper.column_attrs
        if state.attrs[attr.key].history.has_changes()
    ]


def _blocked(entity_type: str, entity_id: str, operation: str, reason: str):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
    )


def _check_goods_receipt_immutability(mapper, connection, target):
    """Prevent any column update on a recorded GoodsReceipt."""
    changed = _changed_columns(mapper, target)
    if not changed:
        return
    raise _blocked(
        "GoodsReceipt",
        str(target.id),
        "UPDATE",
        f"Recorded goods receipts cannot be modified (fields: {', '.join(sorted(changed))})",
    )


def _check_goods_receipt_delete(mapper, connection, target):
    """Prevent deletion of a recorded GoodsReceipt."""
    raise _blocked(
        "GoodsReceipt",
        str(target.id),
        "DELETE",
        "Recorded goods receipts cannot be deleted",
    )


def _check_goods_receipt_line_immutability(mapper, connection, target):
    """Prevent any column update on a receipt line."""
    changed = _changed_columns(mapper, target)
    if not changed:
        return
    raise _blocked(
        "GoodsReceiptLine",
        str(target.id),
        "UPDATE",
        f"Receipt lines cannot be modified (fields: {', '.join(sorted(changed))})",
    )


def _check_goods_receipt_line_delete(mapper, connection, target):
    """Prevent deletion of a receipt line."""
    raise _blocked(
        "GoodsReceiptLine",
        str(target.id),
        "DELETE",
        "Receipt lines cannot be deleted",
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Idempotent: listeners already present are not added twice.
    """
    from supply_modules.purchasing.orm import GoodsReceiptLineModel, GoodsReceiptModel

    for target, event_name, fn in _listeners(GoodsReceiptModel, GoodsReceiptLineModel):
        if not event.contains(target, event_name, fn):
            event.listen(target, event_name, fn)

    logger.debug("immutability_listeners_registered")


def _listeners(receipt_model, line_model):
    return (
        (receipt_model, "before_update", _check_goods_receipt_immutability),
        (receipt_model, "before_delete", _check_goods_receipt_delete),
        (line_model, "before_update", _check_goods_receipt_line_immutability),
        (line_model, "before_delete", _check_goods_receipt_line_delete),
    )


def _safe_remove_listener(target, event_name, listener_fn):
    """
    Safely remove an event listener, ignoring if not registered.

    This prevents errors when unregistering listeners that may not have been
    registered (e.g., in test scenarios with custom setup/teardown).
    """
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    from supply_modules.purchasing.orm import GoodsReceiptLineModel, GoodsReceiptModel

    for target, event_name, fn in _listeners(GoodsReceiptModel, GoodsReceiptLineModel):
        _safe_remove_listener(target, event_name, fn)
