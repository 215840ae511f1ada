"""Streaming reply decoding.

- parser.py: bytes to ``data:`` payloads (frame boundaries, incremental UTF-8)
- models.py: frame payload encoding and classification
- assembler.py: folding payloads into the open assistant message
"""

from .assembler import StreamAssembler, assemble
from .models import (
    DeltaPayload,
    ErrorPayload,
    FrameKind,
    StreamFrame,
    decode_frame,
    delta_frame,
    done_frame,
    encode_frame,
    error_frame,
)
from .parser import ChunkParser

__all__ = [
    "ChunkParser",
    "DeltaPayload",
    "ErrorPayload",
    "FrameKind",
    "StreamAssembler",
    "StreamFrame",
    "assemble",
    "decode_frame",
    "delta_frame",
    "done_frame",
    "encode_frame",
    "error_frame",
]
