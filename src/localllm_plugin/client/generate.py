"""Streaming client for Ollama-compatible /api/generate endpoints.

One call = one POST with `stream: true`. The server answers with NDJSON, one
object per line, each carrying a `response` text fragment. Fragments are
concatenated in the order received and returned once the connection closes.

No retries. A malformed line aborts the call and the text gathered so far is
discarded.
"""
from __future__ import annotations
import json
import logging
import threading
import time
from typing import Iterator

import httpx

from localllm_plugin.common.errors import (
    DecodeError,
    GenerationCancelled,
    HttpStatusError,
    NetworkError,
)
from localllm_plugin.common.schema import GenerationChunk, GenerationRequest

LOGGER = logging.getLogger("localllm.client.generate")


def decode_line(line: str) -> GenerationChunk:
    """
    Decode a single NDJSON line into a chunk.

    Args:
        line: One non-empty line of the response body.

    Raises:
        DecodeError: if the line is not a JSON object or `response` is not a string.
    """
    try:
        obj = json.loads(line)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Malformed JSON line: {e}", line) from e
    if not isinstance(obj, dict):
        raise DecodeError(f"Expected a JSON object, got {type(obj).__name__}", line)
    if obj.get("error"):
        LOGGER.warning("Server reported error in stream: %s", obj["error"])
    fragment = obj.get("response")
    if fragment is None:
        return GenerationChunk()
    if not isinstance(fragment, str):
        raise DecodeError(f"Field 'response' must be a string, got {type(fragment).__name__}", line)
    return GenerationChunk(response=fragment)


class StreamingGenerateClient:
    """Blocking generate client over a shared, pooled `httpx.Client`.

    The underlying client is safe to share between threads and holds no
    per-query state; each `generate` call owns its own accumulator.
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        timeout: float | None = 120.0,
        connect_timeout: float = 5.0,
    ) -> None:
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client()
        self.set_timeouts(timeout, connect_timeout)

    @property
    def http_client(self) -> httpx.Client:
        return self._http

    def set_timeouts(self, timeout: float | None, connect_timeout: float) -> None:
        """Read timeout applies per streamed line; None waits indefinitely."""
        self.timeout = httpx.Timeout(timeout, connect=connect_timeout)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "StreamingGenerateClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def stream_fragments(
        self,
        endpoint: str,
        model: str,
        prompt: str,
        cancel: threading.Event | None = None,
    ) -> Iterator[str]:
        """
        POST a generation request and yield text fragments as they arrive.

        Args:
            endpoint: Full URL of the generate endpoint.
            model: Model name, passed through unchecked.
            prompt: Prompt text, passed through unchecked.
            cancel: Optional event; when set the stream is abandoned.

        Raises:
            NetworkError, HttpStatusError, DecodeError, GenerationCancelled
        """
        _check_cancel(cancel)
        body = GenerationRequest(model=model, prompt=prompt).model_dump_json()
        headers = {"Content-Type": "application/json"}
        try:
            with self._http.stream(
                "POST", endpoint, content=body, headers=headers, timeout=self.timeout
            ) as r:
                if not r.is_success:
                    r.read()
                    raise HttpStatusError(
                        r.status_code,
                        str(r.request.url),
                        f"HTTP {r.status_code} from {r.request.url}: {_error_detail(r)}",
                    )
                for line in r.iter_lines():
                    _check_cancel(cancel)
                    if not line:
                        continue
                    chunk = decode_line(line)
                    yield chunk.response
        except httpx.DecodingError as e:
            raise DecodeError(f"Could not decode response body: {e}", "") from e
        except httpx.TransportError as e:
            # covers connect/read timeouts and missing http(s) scheme as well
            raise NetworkError(f"{type(e).__name__}: {str(e) or 'request to ' + endpoint + ' failed'}") from e
        except httpx.InvalidURL as e:
            raise NetworkError(f"Invalid endpoint URL {endpoint!r}: {e}") from e
        except httpx.RequestError as e:
            raise NetworkError(f"{type(e).__name__}: {e}") from e

    def generate(
        self,
        endpoint: str,
        model: str,
        prompt: str,
        cancel: threading.Event | None = None,
    ) -> str:
        """
        Run one request/response cycle and return the concatenated answer.

        Returns:
            All fragments joined without separators; "" for an empty stream.
        """
        LOGGER.info("Generating with model=%s endpoint=%s", model, endpoint)
        start = time.time()
        parts: list[str] = []
        try:
            for fragment in self.stream_fragments(endpoint, model, prompt, cancel):
                parts.append(fragment)
        except Exception as e:
            LOGGER.error("Generation failed after %d fragments: %s", len(parts), e)
            raise
        answer = "".join(parts)
        latency_ms = int((time.time() - start) * 1000)
        LOGGER.info(
            "Generation done: %d fragments, %d chars, %sms", len(parts), len(answer), latency_ms
        )
        return answer


def _check_cancel(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise GenerationCancelled()


def _error_detail(r: httpx.Response) -> str:
    """Best-effort error text from a failed response body."""
    try:
        data = r.json()
    except ValueError:
        return r.text.strip() or r.reason_phrase
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return r.text.strip() or r.reason_phrase
