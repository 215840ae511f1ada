"""Incremental SSE chunk parser.

Turns response body bytes, delivered in arbitrary pieces, into ``data:``
payload strings. Decoding is stateful so a multi-byte character split across
two chunks is reassembled instead of being replaced.
"""

import codecs
import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator

from ..config import DATA_PREFIX, FRAME_DELIMITER

logger = logging.getLogger(__name__)


class ChunkParser:
    """Buffers decoded text until a blank line completes a frame.

    An instance belongs to a single stream; create a new one per response.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""
        self._closed = False

    @property
    def pending(self) -> str:
        """Decoded text not yet terminated by a frame boundary."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[str]:
        """Decode ``chunk`` and return the payloads of every completed frame."""
        if self._closed:
            raise RuntimeError("Parser already closed")
        self._buffer += self._decoder.decode(chunk)
        return self._drain()

    def close(self) -> list[str]:
        """Flush the decoder at end of stream.

        An unterminated trailing frame is discarded, as SSE only dispatches
        events at a blank line.
        """
        if self._closed:
            return []
        self._closed = True
        self._buffer += self._decoder.decode(b"", final=True)
        payloads = self._drain()
        if self._buffer.strip():
            logger.debug("Discarding unterminated frame at end of stream: %.200s", self._buffer)
        self._buffer = ""
        return payloads

    def _drain(self) -> list[str]:
        *frames, self._buffer = self._buffer.split(FRAME_DELIMITER)
        return [frame[len(DATA_PREFIX):] for frame in frames if frame.startswith(DATA_PREFIX)]

    def iter_payloads(self, chunks: Iterable[bytes]) -> Iterator[str]:
        """Lazily yield payloads from a synchronous byte iterable."""
        for chunk in chunks:
            yield from self.feed(chunk)
        yield from self.close()

    async def aiter_payloads(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
        """Lazily yield payloads as body chunks arrive."""
        async for chunk in chunks:
            for payload in self.feed(chunk):
                yield payload
        for payload in self.close():
            yield payload
