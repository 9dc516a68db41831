# vpn_bot/models/events.py - Transport-neutral inbound chat events
from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass(frozen=True)
class TextMessage:
    """A text message, possibly a /command."""
    user_id: int
    chat_id: int
    text: str
    is_command: bool = False
    command: Optional[str] = None
    args: List[str] = field(default_factory=list)

    @classmethod
    def parse(cls, user_id: int, chat_id: int, text: str) -> "TextMessage":
        """Builds a message, splitting ``/command@bot arg1 arg2`` into its parts."""
        text = text or ""
        if not text.startswith("/") or len(text) < 2:
            return cls(user_id=user_id, chat_id=chat_id, text=text)
        parts = text.split()
        command = parts[0][1:].split("@", 1)[0].lower()
        if not command:
            return cls(user_id=user_id, chat_id=chat_id, text=text)
        return cls(user_id=user_id, chat_id=chat_id, text=text, is_command=True, command=command, args=parts[1:])


@dataclass(frozen=True)
class DocumentUpload:
    """An uploaded file; ``file_ref`` is the transport's handle for downloading it."""
    user_id: int
    chat_id: int
    file_ref: str
    file_name: Optional[str] = None


@dataclass(frozen=True)
class ButtonClick:
    """An inline button press carrying its callback data."""
    user_id: int
    chat_id: int
    data: str


InboundEvent = Union[TextMessage, DocumentUpload, ButtonClick]
