from __future__ import annotations
"""Simple finite state machine utility for enforcing allowed status transitions.

Designed for lightweight lifecycle models (Order).
Usage:
    from tender_api.utils.fsm import TransitionValidator
    ORDER_FSM = TransitionValidator({
        'PENDING_PROCUREMENT': {'PENDING_CHAIRMAN', 'CANCELLED'},
        'PENDING_CHAIRMAN': {'APPROVED', 'REJECTED', 'CANCELLED'},
        'APPROVED': set(),
    })
    ORDER_FSM.assert_can_transition(current_status, target_status)

Raises InvalidTransition (400) if the edge is not part of the graph.
"""
from typing import Dict, Iterable, Set
from tender_api.errors import InvalidTransition


class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status'):
        self.graph = graph
        self.field_name = field_name

    @property
    def states(self) -> Set[str]:
        return set(self.graph)

    def is_terminal(self, state: str) -> bool:
        return not self.graph.get(state)

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str):
        if not self.can_transition(current, target):
            raise InvalidTransition(f"Invalid {self.field_name} transition {current} -> {target}")
        return True

    def assert_in_state(self, current: str, required: Iterable[str], message: str = None):
        """Precondition check used by dedicated operations: current must be one of required."""
        required = tuple(required)
        if current not in required:
            raise InvalidTransition(
                message or f"{self.field_name} must be {' or '.join(required)}",
                details=f"current {self.field_name} is {current}, required {' or '.join(required)}",
            )
        return True


__all__ = ['TransitionValidator']
