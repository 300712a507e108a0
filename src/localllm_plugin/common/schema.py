"""Pydantic models and dataclasses for request/response types."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict


class GenerationRequest(BaseModel):
    """Body of a streaming POST to /api/generate."""
    model_config = ConfigDict(frozen=True)

    model: str
    prompt: str
    stream: Literal[True] = True


@dataclass(frozen=True)
class GenerationChunk:
    """One decoded NDJSON line; `response` may be empty."""
    response: str = ""


@dataclass(frozen=True)
class ModelInfo:
    """Model entry as reported by GET /api/tags."""
    name: str
    size: int | None = None
    modified_at: str | None = None
    digest: str | None = None


@dataclass
class QueryResult:
    """Displayable outcome of a single launcher query."""
    title: str
    subtitle: str
    copy_text: str | None = None
    is_error: bool = False
