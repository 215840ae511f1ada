"""Error taxonomy shared by the backend and the chat client.

Hides how failures are classified and worded for the user:
- validation errors (malformed request) map to 400
- configuration errors (missing credentials) map to 500
- upstream provider errors are mapped to human-readable text
- stream failures carry the error payload of an SSE frame
"""

QUOTA_MESSAGE = "Quota exceeded: the API usage limit was reached. Please try again later."
AUTH_MESSAGE = "Authentication failed: please check the API key."
SERVER_MESSAGE = "A server error occurred. Please try again later."

# Human-readable fallbacks for common upstream status codes
STATUS_MESSAGES = {
    401: AUTH_MESSAGE,
    429: QUOTA_MESSAGE,
    500: SERVER_MESSAGE,
}

QUOTA_HELP = (
    "Check your API key at https://aistudio.google.com/app/apikey "
    "or review the pricing limits at https://ai.google.dev/pricing."
)


class ChatRelayError(Exception):
    """Base class for chatrelay errors."""


class ChatValidationError(ChatRelayError):
    """The inbound chat request is malformed."""


class ConfigurationError(ChatRelayError):
    """Upstream credentials or provider settings are missing."""


class EmptyCompletionError(ChatRelayError):
    """The upstream model returned no extractable text."""


class UpstreamError(ChatRelayError):
    """The upstream provider rejected or failed the request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ChatRequestError(ChatRelayError):
    """The backend answered the chat request with a non-success status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class StreamError(ChatRelayError):
    """An error payload arrived inside the reply stream."""


def status_message(status_code: int) -> str:
    """Human-readable text for an HTTP status code."""
    return STATUS_MESSAGES.get(status_code, f"HTTP error! status: {status_code}")


def is_quota_error(message: str | None) -> bool:
    """Whether an error text describes an exhausted quota."""
    if not message:
        return False
    lowered = message.lower()
    return "quota" in lowered or "429" in lowered or "rate limit" in lowered


def error_hint(message: str | None) -> str | None:
    """Contextual help shown under the error banner, if any."""
    return QUOTA_HELP if is_quota_error(message) else None


def upstream_status(exc: BaseException) -> int | None:
    """Extract an HTTP status from a provider SDK exception.

    OpenAI and Anthropic errors expose ``status_code``; Google GenAI errors
    expose ``code``.
    """
    for attr in ("status_code", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


def describe_upstream_error(exc: BaseException) -> UpstreamError:
    """Wrap a provider exception with a status and user-facing text."""
    if isinstance(exc, UpstreamError):
        return exc
    status = upstream_status(exc)
    if status in STATUS_MESSAGES and status != 500:
        return UpstreamError(STATUS_MESSAGES[status], status_code=status)
    return UpstreamError(str(exc) or SERVER_MESSAGE, status_code=status)
