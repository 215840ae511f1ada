"""Stream frame models.

A frame payload is either a delta (``{"content": ...}``), an error
(``{"error": ...}``) or the ``[DONE]`` sentinel. The backend encodes frames
with these models and the client decodes them back.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel

from ..config import DATA_PREFIX, DONE_SENTINEL, FRAME_DELIMITER

logger = logging.getLogger(__name__)


class FrameKind(str, Enum):
    DELTA = "delta"
    ERROR = "error"
    DONE = "done"


@dataclass(frozen=True)
class StreamFrame:
    """One decoded frame. ``text`` is the delta or the error message."""

    kind: FrameKind
    text: str = ""


class DeltaPayload(BaseModel):
    content: str


class ErrorPayload(BaseModel):
    error: str


def encode_frame(payload: BaseModel | str) -> str:
    """Render a payload as one SSE ``data:`` frame."""
    body = payload if isinstance(payload, str) else payload.model_dump_json()
    return f"{DATA_PREFIX}{body}{FRAME_DELIMITER}"


def delta_frame(content: str) -> str:
    return encode_frame(DeltaPayload(content=content))


def error_frame(message: str) -> str:
    return encode_frame(ErrorPayload(error=message))


def done_frame() -> str:
    return encode_frame(DONE_SENTINEL)


def decode_frame(payload: str) -> StreamFrame | None:
    """Classify a frame payload.

    Returns None for payloads that are not valid JSON objects or carry
    neither a non-empty ``error`` nor a string ``content`` field; those are logged and
    should be skipped by the caller.
    """
    if payload.strip() == DONE_SENTINEL:
        return StreamFrame(FrameKind.DONE)

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse stream frame: %s - payload: %.200s", e, payload)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring non-object stream frame: %.200s", payload)
        return None

    if data.get("error"):
        error = data["error"]
        if isinstance(error, dict):
            error = error.get("message") or json.dumps(error)
        return StreamFrame(FrameKind.ERROR, str(error) or "Stream error")

    content = data.get("content")
    if isinstance(content, str):
        return StreamFrame(FrameKind.DELTA, content)

    logger.warning("Ignoring stream frame without content: %.200s", payload)
    return None
