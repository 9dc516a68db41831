# vpn_bot/services/session_store.py - Per-user conversation state storage
import logging
import threading
from typing import Dict, Optional, Tuple

from ..models.session import ConversationState, FlowKind, UserSession, is_valid_transition

logger = logging.getLogger(__name__)


class SessionStore:
    """Thread-safe mapping of user id to conversation state and form data.

    All sessions share one lock. Every method holds it only for the dictionary
    access, never across I/O, and callers only ever receive copies.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: Dict[int, UserSession] = {}

    def start_flow(self, user_id: int, state: ConversationState, flow: FlowKind) -> bool:
        """Replaces the user's session with a fresh one for ``flow``.

        Any incomplete form is discarded. Returns False when the current state
        does not allow starting a new flow (a payment is pending).
        """
        with self._lock:
            current = self._sessions.get(user_id)
            current_state = current.state if current else ConversationState.IDLE
            if not is_valid_transition(current_state, state):
                return False
            self._sessions[user_id] = UserSession(state=state, flow=flow)
            return True

    def set_state(self, user_id: int, state: ConversationState, flow: Optional[FlowKind] = None) -> None:
        """Moves the user to ``state``, keeping form data. IDLE removes the session."""
        if state == ConversationState.IDLE:
            self.clear_state(user_id)
            return
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                self._sessions[user_id] = UserSession(state=state, flow=flow)
            else:
                session.state = state
                if flow is not None:
                    session.flow = flow

    def advance(self, user_id: int, expected: ConversationState, new_state: ConversationState, **fields: str) -> bool:
        """Atomically moves from ``expected`` to ``new_state`` and stores ``fields``.

        Returns False (and changes nothing) if the user is not in ``expected``
        any more, e.g. because a concurrent turn already advanced the session.
        """
        if not is_valid_transition(expected, new_state):
            raise ValueError(f"Invalid transition {expected.value} -> {new_state.value}")
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None or session.state != expected:
                return False
            session.form.update(fields)
            session.state = new_state
            return True

    def take(self, user_id: int, expected: ConversationState, flow: Optional[FlowKind] = None) -> Optional[UserSession]:
        """Removes and returns the session if it is in ``expected`` (and ``flow``)."""
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None or session.state != expected:
                return None
            if flow is not None and session.flow != flow:
                return None
            del self._sessions[user_id]
            return session

    def get_state(self, user_id: int) -> Tuple[ConversationState, bool]:
        """Returns ``(state, found)``; an absent session is ``(IDLE, False)``."""
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                return ConversationState.IDLE, False
            return session.state, True

    def get_session(self, user_id: int) -> Optional[UserSession]:
        with self._lock:
            session = self._sessions.get(user_id)
            return session.copy() if session else None

    def get_form(self, user_id: int) -> Dict[str, str]:
        with self._lock:
            session = self._sessions.get(user_id)
            return dict(session.form) if session else {}

    def update_form(self, user_id: int, **fields: str) -> bool:
        """Merges ``fields`` into the form; False if the user has no session."""
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                return False
            session.form.update(fields)
            return True

    def clear_state(self, user_id: int) -> bool:
        """Removes state and form together. Clearing an absent session is a no-op."""
        with self._lock:
            removed = self._sessions.pop(user_id, None)
        if removed is not None:
            logger.debug(f"Cleared session of user {user_id} (was {removed.state.value})")
        return removed is not None

    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)
