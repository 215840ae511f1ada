"""Factory functions for the CLI.

Centralizes creation of settings, transcript storage and the LLM provider from
environment variables, hiding configuration details from the commands.
"""

from pathlib import Path

from rich.console import Console

from ..config import Settings
from ..llm import LLMProvider
from ..llm.factory import provider_from_settings
from ..transcript import Storage, create_storage

_console = Console()


def get_settings() -> Settings:
    """Settings from the environment (``.env`` is loaded by the CLI app)."""
    return Settings.from_env()


def get_storage(settings: Settings, path: Path | None = None, persist: bool = True) -> Storage:
    """Transcript storage for the chat clients.

    Args:
        settings: Runtime settings providing the default history directory
        path: Directory override
        persist: False keeps the transcript in memory only
    """
    if not persist:
        return create_storage("memory")
    return create_storage("file", path=path or settings.history_path)


def get_llm(settings: Settings, console: Console | None = None) -> LLMProvider | None:
    """Create the configured LLM provider, or None with a warning if no key is set."""
    con = console or _console
    llm = provider_from_settings(settings)
    if llm is None:
        con.print(
            f"[yellow]Warning: no API key set for provider '{settings.provider}'; "
            f"/api/chat will answer 500[/yellow]"
        )
    return llm
