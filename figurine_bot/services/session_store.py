"""
Conversation session record and the store that owns it.

Sessions are keyed by normalized phone. The store interface is small on
purpose (get / save / reset / items) so the in-memory implementation can be
swapped for a key-value store without touching the state machine.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, replace
from datetime import datetime

from figurine_bot.constants.states import ConversationState, MiniSize, MiniStyle, Mode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    greeted: bool = False
    mode: Mode = Mode.NONE
    photo_received: bool = False
    last_image_url: str | None = None
    mini_style: MiniStyle | None = None
    awaiting_style: bool = False
    mini_size: MiniSize | None = None
    preview_payment_pending: bool = False
    preview_paid: bool = False
    preview_sent: bool = False
    expected_amount_cents: int | None = None
    preview_created_at: datetime | None = None
    preview_charge_sends: int = 0
    last_preview_charge_at: datetime | None = None
    preview_ref: str | None = None

    def update(self, **changes) -> "Session":
        return replace(self, **changes)

    @property
    def state(self) -> ConversationState:
        return derive_state(self)

    def is_awaiting_payment(self) -> bool:
        return (
            self.preview_payment_pending
            and not self.preview_paid
            and self.expected_amount_cents is not None
        )


def derive_state(session: Session) -> ConversationState:
    """Map the session flags onto the single active step of the flow."""
    if not session.greeted:
        return ConversationState.UNSEEN
    if session.mode == Mode.MASCOT:
        return ConversationState.MASCOT_BROWSING
    if session.mode != Mode.FIGURINE:
        return ConversationState.MAIN_MENU
    if not session.photo_received:
        return ConversationState.AWAITING_PHOTO
    if session.preview_sent:
        return ConversationState.QUOTED if session.mini_size else ConversationState.AWAITING_SIZE
    if session.preview_paid:
        return ConversationState.PREVIEW_PENDING
    if session.preview_payment_pending:
        return ConversationState.PAYMENT_PENDING
    return ConversationState.AWAITING_STYLE


class SessionStore(ABC):
    @abstractmethod
    def get(self, phone: str) -> Session:
        """Current session for phone (a fresh default session if none exists)."""

    @abstractmethod
    def save(self, phone: str, session: Session) -> None: ...

    @abstractmethod
    def reset(self, phone: str) -> Session:
        """Reset phone's session to defaults, keeping it marked as greeted."""

    @abstractmethod
    def items(self) -> Iterator[tuple[str, Session]]: ...


class InMemorySessionStore(SessionStore):
    def __init__(self):
        self._sessions: dict[str, Session] = {}

    def get(self, phone: str) -> Session:
        return self._sessions.get(phone) or Session()

    def save(self, phone: str, session: Session) -> None:
        self._sessions[phone] = session

    def reset(self, phone: str) -> Session:
        session = Session(greeted=True)
        self._sessions[phone] = session
        return session

    def items(self) -> Iterator[tuple[str, Session]]:
        # Snapshot so callers may save while iterating
        return iter(list(self._sessions.items()))

    def __len__(self) -> int:
        return len(self._sessions)
