"""
Purchasing Workflows.

State machine for the purchase order lifecycle and the evaluators for its
guards.

    draft --send--> sent --confirm--> confirmed --receive--> partially_received
      |               |                   |                        |
      +--cancel--+----+                   +------receive------+    +--receive--+
                 v                                            v                v
             cancelled                                    completed <----------+
"""

from typing import Any

from supply_engines.state_machine import GuardExecutor, StateMachine, context_value
from supply_kernel.domain.workflow import Guard, Transition, Workflow
from supply_kernel.logging_config import get_logger

logger = get_logger("modules.purchasing.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

ORDER_READY_TO_SEND = Guard(
    name="order_ready_to_send",
    description="Order has at least one line and a registered supplier",
)

RECEIPTS_PARTIAL = Guard(
    name="receipts_partial",
    description="Receipts cover some but not all ordered quantity",
)

ALL_LINES_RECEIVED = Guard(
    name="all_lines_received",
    description="Receipts cover the ordered quantity on every line",
)


# -----------------------------------------------------------------------------
# Purchase Order Workflow
# -----------------------------------------------------------------------------

PURCHASE_ORDER_WORKFLOW = Workflow(
    name="purchase_order",
    description="Purchase order lifecycle",
    initial_state="draft",
    states=(
        "draft",
        "sent",
        "confirmed",
        "partially_received",
        "completed",
        "cancelled",
    ),
    transitions=(
        Transition("draft", "sent", action="send", guard=ORDER_READY_TO_SEND),
        Transition("draft", "cancelled", action="cancel"),
        Transition("sent", "confirmed", action="confirm"),
        Transition("sent", "cancelled", action="cancel"),
        Transition("confirmed", "partially_received", action="receive", guard=RECEIPTS_PARTIAL),
        Transition("confirmed", "completed", action="receive", guard=ALL_LINES_RECEIVED),
        Transition("partially_received", "completed", action="receive", guard=ALL_LINES_RECEIVED),
    ),
    terminal_states=("completed", "cancelled"),
)

logger.info(
    "purchasing_po_workflow_registered",
    extra={
        "workflow_name": PURCHASE_ORDER_WORKFLOW.name,
        "state_count": len(PURCHASE_ORDER_WORKFLOW.states),
        "transition_count": len(PURCHASE_ORDER_WORKFLOW.transitions),
        "initial_state": PURCHASE_ORDER_WORKFLOW.initial_state,
    },
)


# -----------------------------------------------------------------------------
# Guard evaluators
#
# Context keys: line_count (int), supplier_known (bool),
# any_received (bool), all_received (bool).
# -----------------------------------------------------------------------------


def _order_ready_to_send(context: Any) -> bool:
    line_count = context_value(context, "line_count", 0) or 0
    return int(line_count) > 0 and bool(context_value(context, "supplier_known", False))


def _receipts_partial(context: Any) -> bool:
    return bool(context_value(context, "any_received", False)) and not bool(
        context_value(context, "all_received", False)
    )


def _all_lines_received(context: Any) -> bool:
    return bool(context_value(context, "all_received", False))


def purchasing_guard_executor() -> GuardExecutor:
    """GuardExecutor with the purchase order guards registered."""
    ex = GuardExecutor()
    ex.register(ORDER_READY_TO_SEND.name, _order_ready_to_send)
    ex.register(RECEIPTS_PARTIAL.name, _receipts_partial)
    ex.register(ALL_LINES_RECEIVED.name, _all_lines_received)
    return ex


class OrderStateMachine(StateMachine):
    """The purchase order state machine with its guards wired in."""

    def __init__(self) -> None:
        super().__init__(PURCHASE_ORDER_WORKFLOW, purchasing_guard_executor())
