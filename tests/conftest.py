from __future__ import annotations

import json
from typing import Any

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from fastapi.testclient import TestClient

GENERATE_URL = "http://testserver/api/generate"


class FakeOllama:
    """Minimal stand-in for an Ollama server; records every generate call."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.status_code = 200
        self.calls: list[dict[str, Any]] = []
        self.models: list[dict[str, Any]] = [
            {"name": "llama3.1:latest", "size": 4661224676, "digest": "abc"},
            {"name": "mistral:latest", "size": 4109865159, "digest": "def"},
        ]
        self.app = self._build_app()

    def reply(self, *fragments: str) -> None:
        self.lines = [json.dumps({"response": f, "done": False}) for f in fragments]

    def _build_app(self) -> FastAPI:
        app = FastAPI()

        @app.post("/api/generate")
        async def generate(request: Request):
            self.calls.append(
                {
                    "content_type": request.headers.get("content-type"),
                    "body": json.loads(await request.body()),
                }
            )
            if self.status_code != 200:
                return JSONResponse(status_code=self.status_code, content={"error": "model not found"})

            def body():
                for line in self.lines:
                    yield line + "\n"

            return StreamingResponse(body(), media_type="application/x-ndjson")

        @app.get("/api/tags")
        def tags() -> dict[str, Any]:
            return {"models": self.models}

        return app


@pytest.fixture()
def fake_ollama() -> FakeOllama:
    return FakeOllama()


@pytest.fixture()
def ollama_http(fake_ollama: FakeOllama) -> TestClient:
    with TestClient(fake_ollama.app) as client:
        yield client
