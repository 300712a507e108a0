"""Launcher query pipeline.

raw query -> clipboard substitution -> send-trigger check -> generate -> result

`QueryProcessor.query` is the error boundary: clipboard and generation
failures come back as error results, never as exceptions, so the host keeps
running whatever the local model server does.
"""
from __future__ import annotations
import logging
import threading
from typing import Protocol

from localllm_plugin.client.generate import StreamingGenerateClient
from localllm_plugin.client.models import list_models
from localllm_plugin.common.errors import ClipboardReadError, GenerationError
from localllm_plugin.common.schema import QueryResult
from localllm_plugin.common.settings import PluginSettings
from localllm_plugin.query.triggers import split_send_trigger, substitute_clipboard

LOGGER = logging.getLogger("localllm.query")


class Clipboard(Protocol):
    def get_text(self) -> str: ...


class StaticClipboard:
    """Clipboard stand-in holding fixed text."""

    def __init__(self, text: str = "") -> None:
        self.text = text

    def get_text(self) -> str:
        return self.text


def send_hint(trigger: str) -> str:
    return f"End input with: '{trigger}'"


class QueryProcessor:
    """Turns raw launcher input into a single displayable result."""

    def __init__(
        self,
        settings: PluginSettings,
        clipboard: Clipboard,
        client: StreamingGenerateClient | None = None,
    ) -> None:
        self.settings = settings
        self.clipboard = clipboard
        self._owns_client = client is None
        self.client = client or StreamingGenerateClient(
            timeout=settings.timeout, connect_timeout=settings.connect_timeout
        )

    def update_settings(self, settings: PluginSettings) -> None:
        """Swap in a freshly built settings object."""
        self.settings = settings
        if self._owns_client:
            self.client.set_timeouts(settings.timeout, settings.connect_timeout)
        LOGGER.info("Settings updated: model=%s endpoint=%s", settings.model, settings.endpoint)

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def query(self, search: str, cancel: threading.Event | None = None) -> list[QueryResult]:
        settings = self.settings
        try:
            text = substitute_clipboard(
                search, settings.clipboard_trigger_keyword, self.clipboard.get_text
            )
        except ClipboardReadError as e:
            LOGGER.warning("Clipboard read failed: %s", e)
            return [
                QueryResult(
                    title="Clipboard Error",
                    subtitle=f"Could not read from clipboard: {e}",
                    is_error=True,
                )
            ]

        prompt = split_send_trigger(text, settings.send_trigger_keyword)
        if prompt is None:
            hint = send_hint(settings.send_trigger_keyword)
            return [QueryResult(title=settings.model, subtitle=hint, copy_text=hint)]

        try:
            answer = self.client.generate(settings.endpoint, settings.model, prompt, cancel)
        except GenerationError as e:
            message = f"Error querying LLM: {e}"
            return [
                QueryResult(title=settings.model, subtitle=message, copy_text=message, is_error=True)
            ]
        return [QueryResult(title=settings.model, subtitle=answer, copy_text=answer)]

    def available_models(self) -> list[str]:
        """Names of models the server reports; empty if it cannot be reached."""
        try:
            models = list_models(
                self.settings.endpoint,
                http_client=self.client.http_client,
                timeout=self.settings.connect_timeout,
            )
        except GenerationError as e:
            LOGGER.warning("Could not list models: %s", e)
            return []
        return [m.name for m in models]
