"""Reply text extraction.

Providers and the backend return text in several shapes (``content``,
``answer``, ``text``, Gemini candidates, OpenAI choices, ...). Each shape is
handled by one small strategy; ``extract_text`` tries an ordered tuple of
strategies and returns the first non-empty result.
"""

from collections.abc import Callable, Sequence
from typing import Any

Strategy = Callable[[Any], str]


def _join_parts(parts: Any) -> str:
    if not isinstance(parts, list):
        return ""
    return "".join(
        p.get("text") or "" for p in parts if isinstance(p, dict)
    )


def _string_field(payload: Any, key: str) -> str:
    if isinstance(payload, dict):
        value = payload.get(key)
        if isinstance(value, str):
            return value
    return ""


def from_content_field(payload: Any) -> str:
    """``{"content": "..."}``"""
    return _string_field(payload, "content")


def from_answer_field(payload: Any) -> str:
    """``{"answer": "..."}``"""
    return _string_field(payload, "answer")


def from_text_field(payload: Any) -> str:
    """``{"text": "..."}``"""
    return _string_field(payload, "text")


def from_plain_string(payload: Any) -> str:
    return payload if isinstance(payload, str) else ""


def from_candidates(payload: Any) -> str:
    """Gemini: ``candidates[0].content`` as parts, a string, or a list of either."""
    if not isinstance(payload, dict):
        return ""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0]
    content = first.get("content") if isinstance(first, dict) else None
    if isinstance(content, str):
        return content
    if isinstance(content, dict):
        return _join_parts(content.get("parts"))
    if isinstance(content, list):
        pieces = []
        for item in content:
            if isinstance(item, str):
                pieces.append(item)
            elif isinstance(item, dict):
                pieces.append(item.get("text") or _join_parts(item.get("parts")))
        return "".join(pieces)
    return ""


def from_output(payload: Any) -> str:
    """Responses-style ``output[].content[].text``, one line per output item."""
    if not isinstance(payload, dict) or not isinstance(payload.get("output"), list):
        return ""
    lines = []
    for item in payload["output"]:
        if isinstance(item, str):
            lines.append(item)
        elif isinstance(item, dict):
            lines.append(_join_parts(item.get("content")))
    return "\n".join(lines) if any(lines) else ""


def from_choices(payload: Any) -> str:
    """Completions-style ``choices[0].text`` or ``choices[0].message.content``."""
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    first = choices[0]
    if isinstance(first.get("text"), str):
        return first["text"]
    return _string_field(first.get("message"), "content")


# Fields the backend's JSON body may use, in priority order
REPLY_STRATEGIES: tuple[Strategy, ...] = (
    from_content_field,
    from_answer_field,
    from_text_field,
)

# Raw provider payloads, in priority order
PROVIDER_STRATEGIES: tuple[Strategy, ...] = (
    from_candidates,
    from_plain_string,
    from_text_field,
    from_output,
    from_choices,
)


def extract_text(payload: Any, strategies: Sequence[Strategy] = PROVIDER_STRATEGIES) -> str:
    """Return the first non-empty text any strategy finds in ``payload``.

    Pydantic models (as returned by provider SDKs) are dumped to plain data
    first. Returns an empty string when nothing matches.
    """
    if payload is None:
        return ""
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump(mode="json", exclude_none=True)
    for strategy in strategies:
        text = strategy(payload)
        if text:
            return text
    return ""
