# vpn_bot/models/session.py - Conversation state and session data structures
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional


class ConversationState(str, Enum):
    """States of the per-user provisioning conversation."""

    IDLE = "idle"  # no session entry
    AWAITING_PASSWORD = "awaiting_password"
    AWAITING_DAYS = "awaiting_days"  # paid flow only
    AWAITING_PAYMENT = "awaiting_payment"  # paid flow only, polling task running
    AWAITING_RESTORE_FILE = "awaiting_restore_file"  # administrator only


class FlowKind(str, Enum):
    """Which workflow a session belongs to."""

    TRIAL = "trial"
    PAID = "paid"
    RESTORE = "restore"


# Allowed transitions. Staying in the same state is listed explicitly where a
# retry (re-prompt) or a restart of the same flow is legal.
STATE_TRANSITIONS: Dict[ConversationState, FrozenSet[ConversationState]] = {
    ConversationState.IDLE: frozenset({
        ConversationState.AWAITING_PASSWORD,
        ConversationState.AWAITING_RESTORE_FILE,
    }),
    ConversationState.AWAITING_PASSWORD: frozenset({
        ConversationState.AWAITING_PASSWORD,  # flow re-entered, form discarded
        ConversationState.AWAITING_DAYS,
        ConversationState.AWAITING_RESTORE_FILE,
        ConversationState.IDLE,
    }),
    ConversationState.AWAITING_DAYS: frozenset({
        ConversationState.AWAITING_PASSWORD,  # flow re-entered, form discarded
        ConversationState.AWAITING_DAYS,  # invalid day count, re-prompt
        ConversationState.AWAITING_PAYMENT,
        ConversationState.AWAITING_RESTORE_FILE,
        ConversationState.IDLE,
    }),
    ConversationState.AWAITING_PAYMENT: frozenset({
        ConversationState.IDLE,
    }),
    ConversationState.AWAITING_RESTORE_FILE: frozenset({
        ConversationState.AWAITING_RESTORE_FILE,
        ConversationState.IDLE,
    }),
}

_missing_states = set(ConversationState) - set(STATE_TRANSITIONS)
if _missing_states:
    raise RuntimeError(f"No transitions defined for states: {sorted(s.value for s in _missing_states)}")


def is_valid_transition(from_state: ConversationState, to_state: ConversationState) -> bool:
    """Checks if a state transition is allowed."""
    return to_state in STATE_TRANSITIONS[from_state]


@dataclass
class UserSession:
    """In-memory conversation state of one user."""
    state: ConversationState
    flow: Optional[FlowKind] = None
    form: Dict[str, str] = field(default_factory=dict)

    def copy(self) -> "UserSession":
        return UserSession(state=self.state, flow=self.flow, form=dict(self.form))


@dataclass(frozen=True)
class PendingOrder:
    """A paid order waiting for settlement; captured by value when polling starts."""
    order_id: str
    user_id: int
    chat_id: int
    amount: int
    password: str
    days: int
