"""
Tests for the guarded state machine and the purchase order workflow.

Validates:
- Every table transition is allowed when its guard passes
- Every non-table (current, requested) pair is an InvalidTransition value
- Failed guards name the guard
- Terminal states accept nothing
- Guards without evaluators fail closed
"""

import pytest

from supply_engines.state_machine import GuardExecutor, StateMachine, context_value
from supply_kernel.domain.workflow import Guard, Transition, Workflow
from supply_kernel.exceptions import InvalidTransitionError
from supply_modules.purchasing.models import OrderStatus
from supply_modules.purchasing.workflows import (
    PURCHASE_ORDER_WORKFLOW,
    OrderStateMachine,
)

READY = {"line_count": 1, "supplier_known": True}
PARTIAL = {"any_received": True, "all_received": False}
ALL = {"any_received": True, "all_received": True}

TABLE = {
    ("draft", "sent"): READY,
    ("draft", "cancelled"): None,
    ("sent", "confirmed"): None,
    ("sent", "cancelled"): None,
    ("confirmed", "partially_received"): PARTIAL,
    ("confirmed", "completed"): ALL,
    ("partially_received", "completed"): ALL,
}


@pytest.fixture
def machine():
    return OrderStateMachine()


class TestOrderStateMachine:

    @pytest.mark.parametrize("pair", sorted(TABLE))
    def test_table_transitions_allowed(self, machine, pair):
        current, requested = pair
        outcome = machine.request(current, requested, TABLE[pair])
        assert outcome.ok
        assert outcome.value == requested

    @pytest.mark.parametrize(
        "current,requested",
        [
            (a, b)
            for a in PURCHASE_ORDER_WORKFLOW.states
            for b in PURCHASE_ORDER_WORKFLOW.states
            if (a, b) not in TABLE
        ],
    )
    def test_non_table_pairs_rejected(self, machine, current, requested):
        outcome = machine.request(current, requested, {**READY, **ALL})
        assert isinstance(outcome.error, InvalidTransitionError)
        assert outcome.error.current_state == current
        assert outcome.error.requested_state == requested
        assert outcome.error.guard is None

    def test_send_without_lines_fails_guard(self, machine):
        outcome = machine.request("draft", "sent", {"line_count": 0, "supplier_known": True})
        assert outcome.error.guard == "order_ready_to_send"

    def test_send_to_unknown_supplier_fails_guard(self, machine):
        outcome = machine.request("draft", "sent", {"line_count": 2, "supplier_known": False})
        assert outcome.error_code == "INVALID_TRANSITION"
        assert outcome.error.guard == "order_ready_to_send"

    def test_partial_guard_rejects_complete_receipts(self, machine):
        outcome = machine.request("confirmed", "partially_received", ALL)
        assert outcome.error.guard == "receipts_partial"

    def test_completion_guard_rejects_partial_receipts(self, machine):
        outcome = machine.request("partially_received", "completed", PARTIAL)
        assert outcome.error.guard == "all_lines_received"

    def test_accepts_enum_states(self, machine):
        outcome = machine.request(OrderStatus.SENT, OrderStatus.CONFIRMED)
        assert outcome.value == "confirmed"

    @pytest.mark.parametrize("terminal", ["completed", "cancelled"])
    def test_terminal_states(self, machine, terminal):
        assert machine.is_terminal(terminal)
        assert machine.allowed_targets(terminal, {**READY, **ALL}) == ()

    def test_allowed_targets_respects_guards(self, machine):
        assert machine.allowed_targets("draft", {"line_count": 0}) == ("cancelled",)
        assert set(machine.allowed_targets("draft", READY)) == {"sent", "cancelled"}

    def test_rejection_logged(self, machine, captured_logs):
        machine.request("completed", "draft")
        records = captured_logs()
        rejected = [r for r in records if r["message"] == "transition_rejected"]
        assert rejected[-1]["reason"] == "no_transition"
        traces = [r for r in records if r["message"] == "SUPPLY_ENGINE_TRACE"]
        assert traces[-1]["engine_name"] == "state_machine"
        assert traces[-1]["outcome_code"] == "INVALID_TRANSITION"


class TestGuardExecutor:

    def test_missing_evaluator_fails_closed(self):
        guard = Guard("unregistered", "nobody evaluates this")
        workflow = Workflow(
            name="w",
            description="",
            initial_state="a",
            states=("a", "b"),
            transitions=(Transition("a", "b", action="go", guard=guard),),
        )
        outcome = StateMachine(workflow).request("a", "b")
        assert outcome.error.guard == "unregistered"

    def test_raising_evaluator_fails_closed(self):
        executor = GuardExecutor()

        def boom(context):
            raise RuntimeError("boom")

        executor.register("g", boom)
        assert executor.is_registered("g")
        assert executor.evaluate(Guard("g", ""), {}) is False

    def test_context_value_from_object(self):
        class Ctx:
            line_count = 3

        assert context_value(Ctx(), "line_count") == 3
        assert context_value(None, "line_count", 0) == 0
        assert context_value({"line_count": 2}, "line_count") == 2


class TestWorkflowDefinition:

    def test_unknown_state_rejected(self):
        with pytest.raises(ValueError):
            Workflow(
                name="w",
                description="",
                initial_state="a",
                states=("a",),
                transitions=(Transition("a", "zzz", action="go"),),
            )

    def test_terminal_with_outgoing_rejected(self):
        with pytest.raises(ValueError):
            Workflow(
                name="w",
                description="",
                initial_state="a",
                states=("a", "b"),
                transitions=(Transition("b", "a", action="back"),),
                terminal_states=("b",),
            )
