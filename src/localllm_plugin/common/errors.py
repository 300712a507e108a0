"""Error taxonomy for generation and query preprocessing."""
from __future__ import annotations


class GenerationError(Exception):
    """Base class for failures of a single generate call."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class NetworkError(GenerationError):
    """Connection refused, DNS failure, timeout or other transport error."""


class HttpStatusError(GenerationError):
    def __init__(self, status_code: int, url: str, message: str | None = None) -> None:
        super().__init__(message or f"HTTP {status_code} from {url}")
        self.status_code = status_code
        self.url = url


class DecodeError(GenerationError):
    """A streamed line was not a JSON object of the expected shape."""

    def __init__(self, message: str, line: str) -> None:
        super().__init__(message)
        self.line = line


class GenerationCancelled(GenerationError):
    def __init__(self, message: str = "Generation cancelled") -> None:
        super().__init__(message)


class ClipboardReadError(Exception):
    """The clipboard collaborator could not provide text."""
