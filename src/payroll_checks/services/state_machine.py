"""Batch commit state machine with transition validation."""

from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class CommitState(str, Enum):
    """States of a single commit invocation."""

    IDLE = "idle"
    VALIDATING = "validating"
    NUMBER_RESERVED = "number_reserved"
    PERSISTING = "persisting"
    COMMITTED = "committed"
    FAILED = "failed"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_state: str, to_state: str, reason: str | None = None):
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason
        msg = f"Invalid transition from '{from_state}' to '{to_state}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class CommitStateMachine:
    """State machine for one batch commit.

    Allowed transitions:
    - idle → validating
    - validating → idle (validation failed, nothing written)
    - validating → number_reserved
    - number_reserved → idle (no bank, reservation abandoned)
    - number_reserved → persisting
    - persisting → committed
    - persisting → failed (some or none of the writes landed)
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        CommitState.IDLE: [CommitState.VALIDATING],
        CommitState.VALIDATING: [CommitState.IDLE, CommitState.NUMBER_RESERVED],
        CommitState.NUMBER_RESERVED: [CommitState.IDLE, CommitState.PERSISTING],
        CommitState.PERSISTING: [CommitState.COMMITTED, CommitState.FAILED],
        CommitState.COMMITTED: [],  # Terminal state
        CommitState.FAILED: [],  # Terminal state
    }

    # States in which no side effect has happened yet
    SIDE_EFFECT_FREE = {
        CommitState.IDLE,
        CommitState.VALIDATING,
        CommitState.NUMBER_RESERVED,
    }

    def __init__(self, company_id: str):
        self.company_id = company_id
        self.state = CommitState.IDLE
        self.history: list[CommitState] = [CommitState.IDLE]

    @classmethod
    def can_transition(cls, from_state: str, to_state: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_state, [])
        return to_state in allowed

    @classmethod
    def validate_transition(cls, from_state: str, to_state: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_state, to_state):
            raise InvalidTransitionError(from_state, to_state)

    @classmethod
    def is_terminal(cls, state: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(state, [])

    def advance(self, to_state: CommitState) -> None:
        """Move to ``to_state`` or raise InvalidTransitionError."""
        self.validate_transition(self.state, to_state)
        logger.debug(
            "Commit for company %s: %s -> %s",
            self.company_id,
            self.state.value,
            to_state.value,
        )
        self.state = to_state
        self.history.append(to_state)

    @property
    def has_side_effects(self) -> bool:
        return self.state not in self.SIDE_EFFECT_FREE
