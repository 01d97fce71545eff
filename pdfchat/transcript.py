"""
Client-side chat transcript.

Holds what a chat window shows and the document text to send along with the
next question. State only changes through the action methods, and history
fetched from the server is merged in without moving messages already shown.
"""

import uuid
from typing import Iterable, List, Optional

from .models import DisplayMessage
from .utils import ensure_utc, has_document_context, utcnow


def merge_messages(current: Iterable[DisplayMessage], incoming: Iterable[DisplayMessage]) -> List[DisplayMessage]:
    """
    Merge two timestamp-ordered message lists.

    Messages are de-duplicated by id (the first occurrence wins, ``current``
    before ``incoming``). The merge is stable: each input keeps its own order,
    and on equal timestamps messages from ``current`` come first.
    """
    seen = set()

    def unique(messages: Iterable[DisplayMessage]) -> List[DisplayMessage]:
        kept = []
        for message in messages:
            if message.id in seen:
                continue
            seen.add(message.id)
            kept.append(message)
        return kept

    left = unique(current)
    right = unique(incoming)

    merged: List[DisplayMessage] = []
    i = j = 0
    while i < len(left) and j < len(right):
        if ensure_utc(right[j].timestamp) < ensure_utc(left[i].timestamp):
            merged.append(right[j])
            j += 1
        else:
            merged.append(left[i])
            i += 1
    merged.extend(left[i:])
    merged.extend(right[j:])
    return merged


class ChatTranscript:
    """State of one chat window."""

    def __init__(self):
        self.messages: List[DisplayMessage] = []
        self.document_text: Optional[str] = None
        self.document_name: Optional[str] = None
        self.is_loading = False

    def _append(self, text: str, role: str, **extra) -> DisplayMessage:
        message = DisplayMessage(
            id=f"local-{uuid.uuid4()}",
            text=text,
            role=role,
            timestamp=utcnow(),
            **extra,
        )
        self.messages.append(message)
        return message

    def submit_query(self, text: str) -> DisplayMessage:
        """Show the user's question right away and wait for the reply."""
        if not text or not text.strip():
            raise ValueError("Cannot submit an empty query")
        self.is_loading = True
        return self._append(text, "user")

    def reply_received(self, reply: str) -> DisplayMessage:
        self.is_loading = False
        return self._append(reply, "bot", context_used=has_document_context(self.document_text))

    def request_failed(self, error: str) -> DisplayMessage:
        self.is_loading = False
        return self._append(error, "bot", is_error=True)

    def upload_complete(self, filename: str, text: str) -> DisplayMessage:
        """Keep the extracted text for later questions and say so in the chat."""
        self.document_text = text
        self.document_name = filename
        return self._append(f'PDF "{filename}" processed. You can now ask questions about it.', "system")

    def clear_document(self) -> None:
        self.document_text = None
        self.document_name = None

    def history_loaded(self, history: Iterable[DisplayMessage]) -> List[DisplayMessage]:
        self.messages = merge_messages(self.messages, history)
        return self.messages

    def document_context(self) -> Optional[str]:
        """Text to send as ``pdfText`` with the next question."""
        return self.document_text
