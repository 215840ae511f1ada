"""Request state of the chat session."""

import asyncio
from dataclasses import dataclass
from enum import Enum


class Phase(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"


@dataclass
class RequestState:
    """Loading flag, cancellation handle and last error of the active session.

    Attributes:
        is_loading: True while an exchange is in flight
        pending_cancel: Task running the in-flight exchange, cancelled by stop()
        error: Text of the last failed exchange, shown in the error banner
        phase: Where the in-flight exchange is
    """

    is_loading: bool = False
    pending_cancel: asyncio.Task | None = None
    error: str | None = None
    phase: Phase = Phase.IDLE

    def begin(self) -> None:
        self.is_loading = True
        self.error = None
        self.phase = Phase.SENDING

    def finish(self) -> None:
        """Return to idle, keeping any error for display."""
        self.is_loading = False
        self.pending_cancel = None
        self.phase = Phase.IDLE

    def reset(self) -> None:
        self.finish()
        self.error = None
