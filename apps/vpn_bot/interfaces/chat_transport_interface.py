from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

# Rows of (label, callback data) pairs
Buttons = List[List[Tuple[str, str]]]


class IChatTransport(ABC):
    @abstractmethod
    async def send_text(self, chat_id: int, text: str, parse_mode: Optional[str] = "HTML",
                        buttons: Optional[Buttons] = None) -> Optional[int]:
        """Sends a text message; returns the message id or None if delivery failed."""
        pass

    @abstractmethod
    async def send_photo(self, chat_id: int, photo, caption: str = "",
                         parse_mode: Optional[str] = "HTML") -> Optional[int]:
        """Sends a photo given as URL, file id or bytes."""
        pass

    @abstractmethod
    async def send_document(self, chat_id: int, path: str, caption: str = "") -> Optional[int]:
        """Sends a local file as a document."""
        pass

    @abstractmethod
    async def download_document(self, file_ref: str) -> bytes:
        """Downloads an uploaded document."""
        pass
