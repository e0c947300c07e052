"""
supply_engines.state_machine -- Guarded document state machine.

Responsibility:
    Decide whether a requested status change is allowed for a document that
    follows a declared ``Workflow``. Guards named on transitions are
    evaluated by a ``GuardExecutor`` that holds the evaluation logic per
    guard name.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Imports only supply_kernel.domain and supply_kernel.exceptions.

Invariants enforced:
    - Only (from, to) pairs present in the workflow's transition table are
      ever allowed. Everything else is an InvalidTransitionError value.
    - Terminal states accept no transitions.
    - A guard with no registered evaluator fails closed.

Failure modes:
    - InvalidTransitionError (no transition) -- pair not in the table.
    - InvalidTransitionError (guard=<name>) -- guard evaluated False.

Usage:
    machine = StateMachine(PURCHASE_ORDER_WORKFLOW, guards)
    outcome = machine.request("draft", "sent", {"line_count": 2, ...})
    if outcome.ok:
        new_status = outcome.value
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from supply_engines.tracer import traced_engine
from supply_kernel.domain.outcome import Outcome
from supply_kernel.domain.workflow import Guard, Transition, Workflow
from supply_kernel.exceptions import InvalidTransitionError
from supply_kernel.logging_config import get_logger

logger = get_logger("engines.state_machine")


def context_value(context: Any, key: str, default: Any = None) -> Any:
    """Get a value from a guard context (mapping or object)."""
    if context is None:
        return default
    if hasattr(context, "get") and callable(getattr(context, "get")):
        return context.get(key, default)
    return getattr(context, key, default)


class GuardExecutor:
    """Evaluates workflow guards against context.

    Guards are declared on transitions (name + description). This executor
    holds the actual evaluation logic per guard name.
    """

    def __init__(self) -> None:
        self._evaluators: dict[str, Callable[[Any], bool]] = {}

    def register(self, guard_name: str, evaluator: Callable[[Any], bool]) -> None:
        """Register an evaluator for a guard by name."""
        self._evaluators[guard_name] = evaluator

    def is_registered(self, guard_name: str) -> bool:
        return guard_name in self._evaluators

    def evaluate(self, guard: Guard, context: Any = None) -> bool:
        """Evaluate a guard against context. Returns True if guard passes."""
        fn = self._evaluators.get(guard.name)
        if fn is None:
            logger.warning(
                "guard_no_evaluator",
                extra={"guard_name": guard.name},
            )
            return False
        try:
            return bool(fn(context))
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "guard_evaluation_error",
                extra={"guard_name": guard.name, "error": str(e)},
            )
            return False


class StateMachine:
    """
    Pure transition decision over a Workflow.

    Contract:
        ``request(current, requested, context)`` returns an Outcome whose
        value is the new state. Nothing is persisted and the inputs are
        never mutated.
    """

    def __init__(self, workflow: Workflow, guards: GuardExecutor | None = None):
        self.workflow = workflow
        self.guards = guards or GuardExecutor()

    @property
    def states(self) -> tuple[str, ...]:
        return self.workflow.states

    def is_terminal(self, state: str) -> bool:
        return state in self.workflow.terminal_states

    def transition_for(self, current: str, requested: str) -> Transition | None:
        return self.workflow.find(str(current), str(requested))

    @traced_engine(
        "state_machine", "1.0", fingerprint_fields=("current", "requested"),
    )
    def request(
        self,
        current: str,
        requested: str,
        context: Any = None,
    ) -> Outcome[str]:
        """Decide the transition ``current -> requested``."""
        current = str(getattr(current, "value", current))
        requested = str(getattr(requested, "value", requested))

        transition = self.workflow.find(current, requested)
        if transition is None:
            logger.info(
                "transition_rejected",
                extra={
                    "workflow": self.workflow.name,
                    "from_state": current,
                    "to_state": requested,
                    "reason": "no_transition",
                },
            )
            return Outcome.failure(InvalidTransitionError(current, requested))

        if transition.guard is not None and not self.guards.evaluate(
            transition.guard, context,
        ):
            logger.info(
                "transition_rejected",
                extra={
                    "workflow": self.workflow.name,
                    "from_state": current,
                    "to_state": requested,
                    "reason": "guard_failed",
                    "guard_name": transition.guard.name,
                },
            )
            return Outcome.failure(
                InvalidTransitionError(current, requested, guard=transition.guard.name),
            )

        logger.debug(
            "transition_allowed",
            extra={
                "workflow": self.workflow.name,
                "action": transition.action,
                "from_state": current,
                "to_state": requested,
            },
        )
        return Outcome.success(requested)

    def allowed_targets(self, current: str, context: Any = None) -> tuple[str, ...]:
        """States reachable from ``current`` whose guards pass for ``context``."""
        current = str(getattr(current, "value", current))
        allowed = []
        for t in self.workflow.transitions:
            if t.from_state != current:
                continue
            if t.guard is None or self.guards.evaluate(t.guard, context):
                allowed.append(t.to_state)
        return tuple(allowed)
