"""Read-only model listing via GET /api/tags.

Informational only; the generation path never depends on it.
"""
from __future__ import annotations
import logging

import httpx

from localllm_plugin.common.errors import DecodeError, HttpStatusError, NetworkError
from localllm_plugin.common.schema import ModelInfo

LOGGER = logging.getLogger("localllm.client.models")

GENERATE_PATH = "/api/generate"
TAGS_PATH = "/api/tags"


def tags_url(endpoint: str) -> str:
    """
    Derive the tags URL from a generate endpoint.

    `http://host:11434/api/generate` -> `http://host:11434/api/tags`. Any other
    path is replaced by /api/tags on the same scheme and host.
    """
    url = httpx.URL(endpoint)
    path = url.path.rstrip("/")
    if path.endswith(GENERATE_PATH):
        prefix = path[: -len(GENERATE_PATH)]
    else:
        prefix = ""
    return f"{url.scheme}://{url.netloc.decode('ascii')}{prefix}{TAGS_PATH}"


def list_models(
    endpoint: str,
    http_client: httpx.Client | None = None,
    timeout: float = 5.0,
) -> list[ModelInfo]:
    """
    List locally available models.

    Args:
        endpoint: The configured generate endpoint.
        http_client: Shared client; a short-lived one is used when omitted.
        timeout: Request timeout in seconds.
    """
    try:
        url = tags_url(endpoint)
    except httpx.InvalidURL as e:
        raise NetworkError(f"Invalid endpoint URL {endpoint!r}: {e}") from e

    try:
        if http_client is not None:
            r = http_client.get(url, timeout=timeout)
        else:
            with httpx.Client(timeout=timeout) as client:
                r = client.get(url)
    except httpx.DecodingError as e:
        raise DecodeError(f"Could not decode tags response: {e}", "") from e
    except httpx.TransportError as e:
        raise NetworkError(f"{type(e).__name__}: {str(e) or 'request to ' + url + ' failed'}") from e
    except httpx.RequestError as e:
        raise NetworkError(f"{type(e).__name__}: {e}") from e

    if not r.is_success:
        raise HttpStatusError(r.status_code, url)

    try:
        data = r.json()
    except ValueError as e:
        raise DecodeError(f"Malformed tags response: {e}", r.text) from e
    if not isinstance(data, dict) or not isinstance(data.get("models", []), list):
        raise DecodeError("Unexpected tags response shape", r.text)

    models: list[ModelInfo] = []
    for entry in data.get("models", []):
        if not isinstance(entry, dict) or not entry.get("name"):
            continue
        models.append(
            ModelInfo(
                name=str(entry["name"]),
                size=entry.get("size"),
                modified_at=entry.get("modified_at"),
                digest=entry.get("digest"),
            )
        )
    LOGGER.info("Found %d models at %s", len(models), url)
    return models
