"""Transcript store.

Owns the ordered list of messages of the current conversation, persists it
through a ``Storage`` backend after every mutation, and notifies listeners so
the UI can re-render as an assistant reply grows.
"""

import logging
from collections.abc import Callable, Iterator

from pydantic import TypeAdapter, ValidationError

from ..config import STORAGE_KEY
from ..llm.models import ChatMessage
from .base import Storage
from .models import Message

logger = logging.getLogger(__name__)

Listener = Callable[[list[Message]], None]

_TRANSCRIPT_ADAPTER = TypeAdapter(list[Message])


class TranscriptStore:
    """Ordered conversation history with fail-soft persistence.

    At most one assistant message is open (still receiving deltas) at a time,
    and while open it is the last element.
    """

    def __init__(self, storage: Storage, key: str = STORAGE_KEY):
        self._storage = storage
        self._key = key
        self._messages: list[Message] = []
        self._open: Message | None = None
        self._listeners: list[Listener] = []

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))

    @property
    def messages(self) -> list[Message]:
        """Snapshot of the transcript, oldest first."""
        return list(self._messages)

    @property
    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    @property
    def open_message(self) -> Message | None:
        """The assistant message currently receiving deltas, if any."""
        return self._open

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with a snapshot after every mutation.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def load(self) -> list[Message]:
        """Restore the persisted transcript, replacing the in-memory one.

        A missing, unreadable or corrupt entry yields an empty transcript.
        """
        raw = None
        try:
            raw = self._storage.get(self._key)
        except Exception:
            logger.warning("Failed to read transcript from %s storage", self._storage.backend_type, exc_info=True)

        messages: list[Message] = []
        if raw:
            try:
                messages = _TRANSCRIPT_ADAPTER.validate_json(raw)
            except ValidationError as e:
                logger.warning("Ignoring corrupt persisted transcript: %s", e)

        self._messages = messages
        self._open = None
        self._notify()
        return self.messages

    def append(self, message: Message) -> Message:
        """Append a complete message, closing any open assistant message."""
        self._open = None
        self._messages.append(message)
        self._changed()
        return message

    def open_assistant(self) -> Message:
        """Append an empty assistant message that will receive deltas."""
        message = self.append(Message.create("assistant"))
        self._open = message
        return message

    def append_delta(self, text: str) -> None:
        """Append ``text`` to the open assistant message.

        Raises:
            RuntimeError: If no assistant message is open
        """
        if self._open is None:
            raise RuntimeError("No assistant message is open")
        self._open.content += text
        self._changed()

    def close_open(self) -> None:
        """Mark the open assistant message as complete."""
        self._open = None

    def truncate(self, length: int) -> None:
        """Drop every message after the first ``length``."""
        if length >= len(self._messages):
            return
        del self._messages[length:]
        if self._open is not None and not any(m is self._open for m in self._messages):
            self._open = None
        self._changed()

    def remove_last(self) -> Message | None:
        """Remove and return the last message."""
        if not self._messages:
            return None
        message = self._messages[-1]
        self.truncate(len(self._messages) - 1)
        return message

    def clear(self) -> None:
        """Empty the transcript and remove its persisted copy."""
        self._messages = []
        self._open = None
        try:
            self._storage.remove(self._key)
        except Exception:
            logger.warning("Failed to clear persisted transcript", exc_info=True)
        self._notify()

    def to_wire(self) -> list[ChatMessage]:
        """The transcript reduced to ``{role, content}`` pairs."""
        return [message.to_chat_message() for message in self._messages]

    def dumps(self) -> str:
        """Serialize the transcript to JSON."""
        return _TRANSCRIPT_ADAPTER.dump_json(self._messages, exclude_none=True).decode("utf-8")

    def _changed(self) -> None:
        self._persist()
        self._notify()

    def _persist(self) -> None:
        try:
            self._storage.set(self._key, self.dumps())
        except Exception:
            logger.warning("Failed to persist transcript", exc_info=True)

    def _notify(self) -> None:
        snapshot = self.messages
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Transcript listener failed")
