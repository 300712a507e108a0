from __future__ import annotations

import httpx

from localllm_plugin.client.generate import StreamingGenerateClient
from localllm_plugin.common.errors import HttpStatusError
from localllm_plugin.common.settings import PluginSettings
from localllm_plugin.query.processor import QueryProcessor, StaticClipboard

from conftest import GENERATE_URL


class _FakeClient:
    """Records generate calls instead of touching the network."""

    def __init__(self, answer: str = "answer", error: Exception | None = None) -> None:
        self.answer = answer
        self.error = error
        self.calls: list[tuple[str, str, str]] = []

    def generate(self, endpoint: str, model: str, prompt: str, cancel=None) -> str:  # noqa: ANN001
        self.calls.append((endpoint, model, prompt))
        if self.error is not None:
            raise self.error
        return self.answer


class _BrokenClipboard:
    def get_text(self) -> str:
        raise OSError("clipboard locked")


def _processor(client: _FakeClient, clip: str = "", **settings) -> QueryProcessor:
    return QueryProcessor(PluginSettings(**settings), StaticClipboard(clip), client=client)  # type: ignore[arg-type]


def test_without_send_trigger_shows_hint_and_skips_network() -> None:
    client = _FakeClient()
    results = _processor(client).query("what is the capital of France")

    assert client.calls == []
    assert len(results) == 1
    assert results[0].title == "llama3.1"
    assert results[0].subtitle == "End input with: '~'"
    assert results[0].copy_text == results[0].subtitle


def test_send_trigger_stripped_before_sending() -> None:
    client = _FakeClient(answer="Paris")
    results = _processor(client).query("capital of France?~")

    assert client.calls == [("http://localhost:11434/api/generate", "llama3.1", "capital of France?")]
    assert results[0].subtitle == "Paris"
    assert results[0].copy_text == "Paris"
    assert not results[0].is_error


def test_clipboard_substituted_then_sent() -> None:
    client = _FakeClient()
    _processor(client, clip="foo").query("<clip>~")

    assert client.calls[0][2] == "foo"


def test_clipboard_failure_returns_error_result() -> None:
    client = _FakeClient()
    processor = QueryProcessor(PluginSettings(), _BrokenClipboard(), client=client)  # type: ignore[arg-type]
    results = processor.query("summarize <clip>~")

    assert client.calls == []
    assert results[0].title == "Clipboard Error"
    assert results[0].subtitle == "Could not read from clipboard: clipboard locked"
    assert results[0].is_error


def test_generation_error_becomes_result() -> None:
    client = _FakeClient(error=HttpStatusError(500, "http://x/api/generate", "HTTP 500 from http://x/api/generate: boom"))
    results = _processor(client).query("hi~")

    assert results[0].is_error
    assert results[0].subtitle == "Error querying LLM: HTTP 500 from http://x/api/generate: boom"


def test_custom_triggers_and_model() -> None:
    client = _FakeClient()
    processor = _processor(client, clip="text", model="mistral", send_trigger_keyword="LL", clipboard_trigger_keyword="@c")
    processor.query("fix @c LL")

    assert client.calls == [("http://localhost:11434/api/generate", "mistral", "fix text ")]


def test_update_settings_replaces_whole_object() -> None:
    client = _FakeClient()
    processor = _processor(client)
    processor.update_settings(PluginSettings(model="qwen2", send_trigger_keyword="!!"))

    assert processor.query("hello~")[0].subtitle == "End input with: '!!'"
    processor.query("hello!!")
    assert client.calls[-1][1:] == ("qwen2", "hello")


def test_end_to_end_against_fake_server(fake_ollama, ollama_http) -> None:
    fake_ollama.reply("Hel", "lo")
    client = StreamingGenerateClient(http_client=ollama_http)
    processor = QueryProcessor(PluginSettings(endpoint=GENERATE_URL), StaticClipboard("greet"), client=client)

    results = processor.query("<clip> me~")

    assert results[0].subtitle == "Hello"
    assert fake_ollama.calls[0]["body"]["prompt"] == "greet me"


def test_non_2xx_discards_partial_answer(fake_ollama, ollama_http) -> None:
    fake_ollama.status_code = 500
    client = StreamingGenerateClient(http_client=ollama_http)
    processor = QueryProcessor(PluginSettings(endpoint=GENERATE_URL), StaticClipboard(), client=client)

    result = processor.query("hi~")[0]

    assert result.is_error
    assert result.subtitle.startswith("Error querying LLM: HTTP 500")


def test_available_models_empty_when_unreachable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    client = StreamingGenerateClient(http_client=httpx.Client(transport=httpx.MockTransport(handler)))
    processor = QueryProcessor(PluginSettings(), StaticClipboard(), client=client)

    assert processor.available_models() == []


def test_corrupt_body_becomes_error_result() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all\n")

    client = StreamingGenerateClient(http_client=httpx.Client(transport=httpx.MockTransport(handler)))
    result = QueryProcessor(PluginSettings(), StaticClipboard(), client=client).query("hi~")[0]

    assert result.is_error
    assert result.subtitle.startswith("Error querying LLM: Could not decode response body")


def test_update_settings_refreshes_owned_client_timeouts() -> None:
    processor = QueryProcessor(PluginSettings(), StaticClipboard())
    try:
        assert processor.client.timeout == httpx.Timeout(120.0, connect=5.0)
        processor.update_settings(PluginSettings(timeout=30, connect_timeout=2))
        assert processor.client.timeout == httpx.Timeout(30.0, connect=2.0)
        processor.update_settings(PluginSettings(timeout=None))
        assert processor.client.timeout.read is None
    finally:
        processor.close()
