"""CSS styles for the chat TUI.

Hides layout and styling decisions from the application logic.
"""

APP_CSS = """
Screen {
    layout: vertical;
    background: $background;
}

#main {
    height: 1fr;
}

/* Transcript */
#chat-history {
    width: 3fr;
    height: 100%;
    background: $panel;
    border: round $primary 60%;
    border-title-color: $primary;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus-within {
        border: round $primary;
    }
}

.chat-message {
    height: auto;
    margin: 1 0 0 0;
    padding: 0 1;
}

.user-message {
    border-left: thick $secondary;
}

.assistant-message {
    border-left: thick $success;
}

.system-message {
    border-left: thick $text-muted;
}

.message-header {
    color: $text-muted;
    text-style: bold;
}

.message-content {
    height: auto;
}

/* Filmography panel, hidden until opened */
#movie-panel {
    width: 2fr;
    height: 100%;
    background: $panel;
    border: round $accent 60%;
    border-title-color: $accent;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
}

/* Error banner */
#error-banner {
    height: auto;
    background: $error 15%;
    color: $text-error;
    border: round $error;
    padding: 0 1;
}

/* Input bar */
#chat-input-bar {
    height: auto;
    max-height: 10;
    padding: 0 1;
}

#chat-input {
    width: 1fr;
    height: auto;
    min-height: 3;
    max-height: 8;
    border: round $border;

    &:focus {
        border: round $primary;
    }
}

#send-btn {
    width: 10;
    margin: 0 0 0 1;
}
"""
