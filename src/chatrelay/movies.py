"""Director filmography panel.

The chat opens this panel when the user asks for the director's films. The
list is static; ``MoviePanel`` only tracks visibility and ordering.
"""

import logging

from pydantic import BaseModel

from .events import OPEN_MOVIE_PANEL, EventBus

logger = logging.getLogger(__name__)

DIRECTOR = "James Cameron"

NAME_TOKENS = ("james cameron", "제임스 카메론", "제임스카메론")
INTENT_TOKENS = (
    "list", "show", "recommend", "movie", "film",
    "영화", "작품", "리스트", "보여줘", "추천",
)


class Movie(BaseModel):
    title: str
    year: int | None = None
    poster: str | None = None


STATIC_MOVIES = [
    Movie(title="The Terminator", year=1984),
    Movie(title="Aliens", year=1986),
    Movie(title="The Abyss", year=1989),
    Movie(title="Terminator 2: Judgment Day", year=1991),
    Movie(title="True Lies", year=1994),
    Movie(title="Titanic", year=1997),
    Movie(title="Avatar", year=2009),
    Movie(title="Avatar: The Way of Water", year=2022),
]


def is_movie_request(text: str) -> bool:
    """Whether ``text`` names the director together with a list/show intent."""
    lowered = text.lower()
    has_name = any(token in lowered for token in NAME_TOKENS)
    has_intent = any(token in lowered for token in INTENT_TOKENS)
    return has_name and has_intent


class MoviePanel:
    """Visibility and content of the filmography panel."""

    def __init__(self, movies: list[Movie] | None = None):
        self._source = list(STATIC_MOVIES if movies is None else movies)
        self._movies: list[Movie] = []
        self.is_open = False

    def bind(self, bus: EventBus):
        """Open the panel whenever ``OPEN_MOVIE_PANEL`` is published."""
        return bus.subscribe(OPEN_MOVIE_PANEL, self.open)

    def open(self, **_: object) -> None:
        self.is_open = True
        if not self._movies:
            self._movies = list(self._source)
            logger.debug("Loaded %d movies", len(self._movies))

    def close(self) -> None:
        self.is_open = False

    def toggle(self) -> bool:
        if self.is_open:
            self.close()
        else:
            self.open()
        return self.is_open

    @property
    def movies(self) -> list[Movie]:
        """Loaded movies, newest first; undated titles last."""
        return sorted(self._movies, key=lambda m: m.year or 0, reverse=True)
