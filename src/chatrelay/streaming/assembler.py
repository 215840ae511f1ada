"""Stream assembler.

Folds decoded frame payloads, in arrival order, into the growing assistant
message:
- ``[DONE]`` ends the exchange
- an ``error`` payload raises ``StreamError``
- a ``content`` payload is appended through the delta callback
- anything else is logged and skipped
"""

import logging
from collections.abc import AsyncIterable, Callable, Iterable

from ..errors import StreamError
from .models import FrameKind, decode_frame

logger = logging.getLogger(__name__)


class StreamAssembler:
    """Applies frame payloads to an open message through ``on_delta``."""

    def __init__(self, on_delta: Callable[[str], None]):
        self._on_delta = on_delta
        self.finished = False
        self.applied = 0
        self.skipped = 0

    def feed(self, payload: str) -> bool:
        """Apply one payload.

        Returns:
            False once the sentinel has been seen and no further frames
            should be consumed, True otherwise

        Raises:
            StreamError: If the payload carries an error
        """
        if self.finished:
            return False

        frame = decode_frame(payload)
        if frame is None:
            self.skipped += 1
            return True

        if frame.kind is FrameKind.DONE:
            self.finished = True
            return False

        if frame.kind is FrameKind.ERROR:
            self.finished = True
            raise StreamError(frame.text)

        self._on_delta(frame.text)
        self.applied += 1
        return True

    def feed_all(self, payloads: Iterable[str]) -> None:
        for payload in payloads:
            if not self.feed(payload):
                break

    async def consume(self, payloads: AsyncIterable[str]) -> None:
        """Apply payloads as they arrive until the stream ends or ``[DONE]``."""
        async for payload in payloads:
            if not self.feed(payload):
                break
        logger.debug("Stream assembled: %d fragments applied, %d skipped", self.applied, self.skipped)


def assemble(payloads: Iterable[str]) -> str:
    """Concatenate the deltas of ``payloads`` into one string."""
    pieces: list[str] = []
    StreamAssembler(pieces.append).feed_all(payloads)
    return "".join(pieces)
