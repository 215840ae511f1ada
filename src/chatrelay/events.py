"""In-process publish/subscribe bus.

Decouples the chat session from secondary panels: the session publishes a
topic, panels subscribe to it at composition time.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

OPEN_MOVIE_PANEL = "open-movie-panel"

Handler = Callable[..., None]


class EventBus:
    """Synchronous topic-based event bus."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """Register ``handler`` for ``topic``.

        Returns:
            A function that removes the subscription
        """
        self._handlers[topic].append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(topic, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, topic: str, **data: Any) -> int:
        """Deliver ``topic`` to every subscriber.

        A failing subscriber is logged and does not prevent delivery to the
        others.

        Returns:
            Number of handlers that ran without raising
        """
        delivered = 0
        for handler in list(self._handlers.get(topic, [])):
            try:
                handler(**data)
                delivered += 1
            except Exception:
                logger.exception("Handler for %r failed", topic)
        return delivered
