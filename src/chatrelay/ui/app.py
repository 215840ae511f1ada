"""Main Textual TUI application.

Wires a ``ChatSession`` to the chat widgets: the transcript re-renders on
every change (so replies appear as they stream), the error banner mirrors the
session's error, and the filmography panel opens when the session publishes
``OPEN_MOVIE_PANEL``.
"""

import asyncio
import logging

import httpx
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer, Header

from ..client import ChatSession
from ..events import OPEN_MOVIE_PANEL, EventBus
from ..movies import MoviePanel
from ..transcript import Storage
from .styles import APP_CSS
from .themes import CATPPUCCIN_MOCHA
from .widgets import ChatHistoryWidget, ChatInputBar, ErrorBanner, MoviePanelWidget

logger = logging.getLogger(__name__)


class ChatTextualApp(App):
    """Textual chat client for the relay backend."""

    CSS = APP_CSS
    TITLE = "chatrelay"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("escape", "stop", "Stop"),
        Binding("ctrl+n", "new_chat", "New Chat"),
        Binding("ctrl+t", "toggle_movies", "Movies"),
        Binding("ctrl+x", "dismiss_error", "Dismiss Error"),
    ]

    def __init__(self, session: ChatSession, bus: EventBus, panel: MoviePanel | None = None) -> None:
        super().__init__()
        self._session = session
        self._bus = bus
        self._panel = panel or MoviePanel()
        self._unsubscribers: list = []

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="main"):
            yield ChatHistoryWidget(id="chat-history")
            yield MoviePanelWidget(self._panel, id="movie-panel")
        yield ErrorBanner(id="error-banner", markup=False)
        yield ChatInputBar(id="chat-input-bar")
        yield Footer()

    def on_mount(self) -> None:
        self.register_theme(CATPPUCCIN_MOCHA)
        self.theme = "catppuccin-mocha"

        self._unsubscribers.append(self._panel.bind(self._bus))
        self._unsubscribers.append(
            self._bus.subscribe(OPEN_MOVIE_PANEL, lambda **_: self._refresh_panel())
        )
        self._unsubscribers.append(self._session.transcript.subscribe(lambda _: self._refresh_chat()))

        self._refresh_chat()
        self._refresh_status()

    def on_unmount(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._session.stop()

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        if self._session.is_loading:
            self.notify("A reply is still streaming (Esc to stop)", severity="warning", timeout=2)
            return
        self._send(event.value)

    @work(group="chat")
    async def _send(self, text: str) -> None:
        """Run one exchange as a background worker."""
        send = asyncio.ensure_future(self._session.send(text))
        # send() has already marked the session as loading when it yields here
        await asyncio.sleep(0)
        self._refresh_status()
        await send
        self._refresh_status()
        if self._session.error:
            self.notify(self._session.error[:80], severity="error", timeout=5)

    def _refresh_chat(self) -> None:
        chat = self.query_one("#chat-history", ChatHistoryWidget)
        chat.sync(self._session.transcript.messages, loading=self._session.is_loading)

    def _refresh_panel(self) -> None:
        self.query_one("#movie-panel", MoviePanelWidget).refresh_panel()

    def _refresh_status(self) -> None:
        session = self._session
        self.query_one("#error-banner", ErrorBanner).show_error(session.error, session.error_hint)
        self.query_one("#chat-input-bar", ChatInputBar).set_enabled(not session.is_loading)
        self.sub_title = session.state.phase.value
        self._refresh_chat()

    def action_stop(self) -> None:
        if self._session.stop():
            self.notify("Stopped", severity="warning", timeout=2)
        self._refresh_status()

    def action_new_chat(self) -> None:
        self._session.new_chat()
        self._refresh_status()
        self.notify("New chat", timeout=2)

    def action_toggle_movies(self) -> None:
        self._panel.toggle()
        self._refresh_panel()

    def action_dismiss_error(self) -> None:
        self._session.dismiss_error()
        self._refresh_status()


async def run_textual_tui(
    server_url: str,
    storage: Storage,
    timeout: float = 60.0,
) -> None:
    """Run the chat TUI against a backend.

    Args:
        server_url: Base URL of the backend serving /api/chat
        storage: Where the transcript is persisted
        timeout: Per-read timeout for streamed replies, in seconds
    """
    bus = EventBus()
    async with httpx.AsyncClient(base_url=server_url, timeout=httpx.Timeout(timeout, connect=10.0)) as client:
        session = ChatSession(client, storage=storage, bus=bus)
        app = ChatTextualApp(session, bus)
        try:
            await app.run_async()
        except (KeyboardInterrupt, asyncio.CancelledError):
            pass
