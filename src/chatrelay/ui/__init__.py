"""Terminal UI module for chatrelay.

Provides a Textual-based chat client for the relay backend.

Module structure:
- widgets.py: Custom widgets (input bar, transcript, error banner, movie panel)
- styles.py: CSS styling (layout decisions)
- themes.py: Color palette
- app.py: Application orchestration (session wiring, key bindings)
"""

from .app import ChatTextualApp, run_textual_tui
from .widgets import ChatHistoryWidget, ChatInputBar, ErrorBanner, MoviePanelWidget

__all__ = [
    "ChatHistoryWidget",
    "ChatInputBar",
    "ChatTextualApp",
    "ErrorBanner",
    "MoviePanelWidget",
    "run_textual_tui",
]
