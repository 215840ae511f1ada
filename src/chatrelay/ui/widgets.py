"""Custom Textual widgets for the chat TUI.

Hides widget implementation details:
- Input history and submission
- Incremental rendering of the transcript while a reply streams in
- Error banner with quota help
- Filmography panel
"""

from datetime import datetime

from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message as TextualMessage
from textual.widgets import Button, Static, TextArea

from ..movies import DIRECTOR, MoviePanel
from ..transcript import Message


class ChatInputBar(Horizontal):
    """Chat input bar with TextArea and Send button."""

    class Submitted(TextualMessage):
        """Posted when the user submits non-empty input."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._history: list[str] = []
        self._history_index: int = -1

    def compose(self):
        text_area = TextArea(id="chat-input", show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Button("Send", id="send-btn", variant="success").with_tooltip(
            "Send message (Ctrl+J)"
        )

    def on_mount(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        text_area.highlight_cursor_line = False
        text_area.focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            self._submit()

    def on_key(self, event) -> None:
        """Ctrl+J submits; Up/Down at the edges walk the input history.

        Terminals do not report modifiers with Enter, so Ctrl+Enter is not usable.
        """
        text_area = self.query_one("#chat-input", TextArea)
        if event.key == "ctrl+j":
            self._submit()
        elif event.key == "up" and text_area.cursor_location == (0, 0):
            self._navigate_history(-1)
        elif event.key == "down" and text_area.cursor_location == text_area.document.end:
            self._navigate_history(1)
        else:
            return
        event.prevent_default()
        event.stop()

    def _navigate_history(self, direction: int) -> None:
        if not self._history:
            return
        text_area = self.query_one("#chat-input", TextArea)
        if direction < 0:
            if self._history_index == -1:
                self._history_index = len(self._history) - 1
            elif self._history_index > 0:
                self._history_index -= 1
        elif self._history_index != -1 and self._history_index < len(self._history) - 1:
            self._history_index += 1
        else:
            self._history_index = -1
            text_area.text = ""
            return
        text_area.text = self._history[self._history_index]

    def _submit(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        value = text_area.text.strip()
        if not value:
            return
        if not self._history or self._history[-1] != value:
            self._history.append(value)
        self._history_index = -1
        text_area.text = ""
        self.post_message(self.Submitted(value))

    def set_enabled(self, enabled: bool) -> None:
        self.query_one("#chat-input", TextArea).disabled = not enabled
        self.query_one("#send-btn", Button).disabled = not enabled
        if enabled:
            self.focus_input()

    def focus_input(self) -> None:
        self.query_one("#chat-input", TextArea).focus()


class ChatHistoryWidget(VerticalScroll):
    """Scrollable transcript that follows a streaming reply."""

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "New conversation"
    ALLOW_SELECT = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._rendered: list[tuple[str | None, Static]] = []

    def sync(self, messages: list[Message], loading: bool = False) -> None:
        """Bring the display in line with ``messages``.

        Existing entries are kept when the transcript only grew or the last
        message's content changed; anything else triggers a full re-render.
        """
        ids = [m.id for m in messages]
        rendered_ids = [rid for rid, _ in self._rendered]
        if rendered_ids != ids[:len(rendered_ids)]:
            self.remove_children()
            self._rendered = []

        if self._rendered:
            last_index = len(self._rendered) - 1
            self._rendered[last_index][1].update(self._body(messages[last_index], loading))

        for message in messages[len(self._rendered):]:
            self._mount_message(message, loading)

        self.border_subtitle = f"{len(messages)} messages" if messages else "New conversation"
        self.scroll_end(animate=False)

    def _body(self, message: Message, loading: bool) -> str:
        if message.role == "assistant" and not message.content and loading:
            return "..."
        return message.content

    def _mount_message(self, message: Message, loading: bool) -> None:
        prefix, icon = ("You", ">") if message.role == "user" else (message.role.capitalize(), "<")
        stamp = ""
        if message.timestamp:
            stamp = datetime.fromtimestamp(message.timestamp / 1000).strftime(" [%H:%M:%S]")

        body = Static(self._body(message, loading), markup=False, classes="message-content")
        container = Vertical(
            Static(f"{icon} {prefix}{stamp}", markup=False, classes="message-header"),
            body,
            classes=f"chat-message {message.role}-message",
        )
        self.mount(container)
        self._rendered.append((message.id, body))


class ErrorBanner(Static):
    """Last exchange error, with help text for quota problems."""

    def on_mount(self) -> None:
        self.display = False

    def show_error(self, error: str | None, hint: str | None = None) -> None:
        if not error:
            self.update("")
            self.display = False
            return
        text = f"Error: {error}"
        if hint:
            text += f"\nHint: {hint}"
        self.update(text)
        self.display = True


class MoviePanelWidget(Static):
    """Renders a ``MoviePanel``; hidden while the panel is closed."""

    BORDER_TITLE = f"Director: {DIRECTOR}"

    def __init__(self, panel: MoviePanel, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._panel = panel

    def on_mount(self) -> None:
        self.refresh_panel()

    def refresh_panel(self) -> None:
        self.display = self._panel.is_open
        if not self._panel.is_open:
            return
        lines = [
            f"{movie.year or '    '}  {movie.title}"
            for movie in self._panel.movies
        ]
        self.update("\n".join(lines) if lines else "No movies found.")
        self.border_subtitle = f"{len(lines)} films"
