"""
Checkout State Machine for validating checkout state transitions.

This module implements the finite state machine a POS session walks through
between item entry and a finished sale, and writes an audit log line for every
state change.
"""

import logging
from typing import Dict, List, Set

from enums.checkout_state import CheckoutState

logger = logging.getLogger(__name__)


class CheckoutTransition:
    """Represents a valid state transition with metadata"""

    def __init__(self, from_state: CheckoutState, to_state: CheckoutState, description: str = ""):
        self.from_state = from_state
        self.to_state = to_state
        self.description = description

    def __repr__(self):
        return f"{self.from_state.value} -> {self.to_state.value}"


class CheckoutStateMachine:
    """
    Finite state machine for checkout transitions with validation and audit logging.

    Valid transitions:
    - ITEM_ENTRY -> PAYMENT_IN_PROGRESS (operator proceeds to checkout)
    - PAYMENT_IN_PROGRESS -> COMPLETED (payment authorized)
    - PAYMENT_IN_PROGRESS -> CANCELLED (declined, network failure or operator cancel)
    - COMPLETED -> ITEM_ENTRY (automatic reset after the sale)
    - CANCELLED -> ITEM_ENTRY (automatic reset, cart kept)

    COMPLETED and CANCELLED are transient: nothing else may leave them.
    """

    VALID_TRANSITIONS: List[CheckoutTransition] = [
        CheckoutTransition(
            CheckoutState.ITEM_ENTRY,
            CheckoutState.PAYMENT_IN_PROGRESS,
            description="Proceed to checkout"
        ),
        CheckoutTransition(
            CheckoutState.PAYMENT_IN_PROGRESS,
            CheckoutState.COMPLETED,
            description="Payment authorized"
        ),
        CheckoutTransition(
            CheckoutState.PAYMENT_IN_PROGRESS,
            CheckoutState.CANCELLED,
            description="Payment cancelled"
        ),
        CheckoutTransition(
            CheckoutState.COMPLETED,
            CheckoutState.ITEM_ENTRY,
            description="Sale finished, cart cleared"
        ),
        CheckoutTransition(
            CheckoutState.CANCELLED,
            CheckoutState.ITEM_ENTRY,
            description="Back to item entry, cart kept"
        ),
    ]

    _transition_map: Dict[CheckoutState, Set[CheckoutState]] = {}
    _transition_descriptions: Dict[tuple, str] = {}

    @classmethod
    def _build_transition_map(cls):
        if cls._transition_map:
            return

        for transition in cls.VALID_TRANSITIONS:
            cls._transition_map.setdefault(transition.from_state, set()).add(transition.to_state)
            cls._transition_descriptions[(transition.from_state, transition.to_state)] = transition.description

    @classmethod
    def is_valid_transition(cls, from_state: CheckoutState, to_state: CheckoutState) -> bool:
        """
        Check if a transition is allowed.

        Unlike order statuses, staying in the same state is not a transition:
        callers treat repeated requests as no-ops before asking.
        """
        cls._build_transition_map()
        return to_state in cls._transition_map.get(from_state, set())

    @classmethod
    def get_valid_transitions(cls, from_state: CheckoutState) -> List[CheckoutState]:
        cls._build_transition_map()
        return list(cls._transition_map.get(from_state, set()))

    @classmethod
    def get_transition_description(cls, from_state: CheckoutState, to_state: CheckoutState) -> str:
        cls._build_transition_map()
        return cls._transition_descriptions.get(
            (from_state, to_state),
            f"Transition from {from_state.value} to {to_state.value}"
        )

    @classmethod
    def is_transient_state(cls, state: CheckoutState) -> bool:
        """COMPLETED and CANCELLED only exist for the instant before the reset."""
        return state in (CheckoutState.COMPLETED, CheckoutState.CANCELLED)

    @classmethod
    def validate_and_log_transition(cls, session_id: str, from_state: CheckoutState,
                                    to_state: CheckoutState) -> bool:
        """
        Validate a transition and write the audit log entry.

        Returns:
            True if the transition is valid and logged, False otherwise
        """
        if not cls.is_valid_transition(from_state, to_state):
            logger.error(f"Invalid checkout transition for session {session_id}: "
                         f"{from_state.value} -> {to_state.value}")
            return False

        description = cls.get_transition_description(from_state, to_state)
        logger.info(f"CHECKOUT_TRANSITION: Session {session_id} "
                    f"{from_state.value} -> {to_state.value}: {description}")
        return True
