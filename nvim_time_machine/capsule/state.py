"""
RestoreStateMachine - tracks the phases of one restore invocation.

SELECT_CAPSULE → PLAN_CONFLICTS → APPLY_DISPOSITION → EXTRACT → DONE
       ↓                ↓                  ↓              ↓
     FAILED           FAILED             FAILED         FAILED

DONE and FAILED are terminal; nothing is rolled back.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Dict, FrozenSet, List, Optional


class RestoreState(Enum):
    """Phases of a restore."""
    SELECT_CAPSULE = auto()
    PLAN_CONFLICTS = auto()
    APPLY_DISPOSITION = auto()
    EXTRACT = auto()
    DONE = auto()
    FAILED = auto()


_NEXT_PHASE = {
    RestoreState.SELECT_CAPSULE: RestoreState.PLAN_CONFLICTS,
    RestoreState.PLAN_CONFLICTS: RestoreState.APPLY_DISPOSITION,
    RestoreState.APPLY_DISPOSITION: RestoreState.EXTRACT,
    RestoreState.EXTRACT: RestoreState.DONE,
}

# Each active phase either advances or fails; terminal phases go nowhere
TRANSITIONS: Dict[RestoreState, FrozenSet[RestoreState]] = {
    state: frozenset({_NEXT_PHASE[state], RestoreState.FAILED}) if state in _NEXT_PHASE else frozenset()
    for state in RestoreState
}


@dataclass
class PhaseChange:
    """One recorded move between phases."""
    from_state: RestoreState
    to_state: RestoreState
    at: datetime
    elapsed_ms: int                        # Time spent in from_state
    details: Dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        return f"{self.from_state.name} → {self.to_state.name} ({self.elapsed_ms}ms)"


class RestoreStateMachine:
    """Rejects out-of-order phases and keeps a log of the ones taken."""

    def __init__(self, initial_state: RestoreState = RestoreState.SELECT_CAPSULE):
        self._state = initial_state
        self._changes: List[PhaseChange] = []
        self._entered_at = datetime.now()

    @property
    def state(self) -> RestoreState:
        return self._state

    @property
    def history(self) -> List[PhaseChange]:
        return list(self._changes)

    def can_transition(self, to_state: RestoreState) -> bool:
        return to_state in TRANSITIONS[self._state]

    def transition(self, to_state: RestoreState, details: Optional[Dict[str, Any]] = None):
        """
        Move to the next phase.

        Raises:
            ValueError: to_state does not follow the current phase
        """
        if not self.can_transition(to_state):
            allowed = sorted(s.name for s in TRANSITIONS[self._state]) or ["none"]
            raise ValueError(
                f"Restore cannot go from {self._state.name} to {to_state.name} "
                f"(allowed: {', '.join(allowed)})"
            )

        now = datetime.now()
        self._changes.append(PhaseChange(
            from_state=self._state,
            to_state=to_state,
            at=now,
            elapsed_ms=int((now - self._entered_at).total_seconds() * 1000),
            details=dict(details or {}),
        ))
        self._state = to_state
        self._entered_at = now

    def fail(self, reason: str = ""):
        """Move to FAILED unless already terminal."""
        if not self.is_terminal():
            self.transition(RestoreState.FAILED, {"reason": reason} if reason else None)

    def is_terminal(self) -> bool:
        return not TRANSITIONS[self._state]

    def format_history(self) -> str:
        return "\n".join(change.describe() for change in self._changes)
