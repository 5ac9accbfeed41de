"""Ollama backed LLM client with streaming responses."""
from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import httpx

from ..config import Settings
from .base import SYSTEM_PROMPT, StreamingHTTPClient, build_rag_prompt


class OllamaClient(StreamingHTTPClient):
    """Stream completions from Ollama's ``/api/generate`` endpoint."""

    backend_name = "Ollama"
    endpoint = "/api/generate"

    def __init__(self, settings: Settings, *, transport: httpx.BaseTransport | None = None) -> None:
        super().__init__(
            settings.llm.ollama_host,
            settings.llm.ollama_model,
            settings.llm.request_timeout,
            transport=transport,
        )

    def _payload(self, prompt: str, context: Sequence[str] | None) -> dict[str, Any]:
        return {
            "model": self._model,
            "system": SYSTEM_PROMPT,
            "prompt": build_rag_prompt(prompt, context),
            "stream": True,
            "options": {"temperature": 0.1, "top_p": 0.9},
        }

    def _parse_line(self, line: str) -> str:
        # One JSON object per line; the closing object has "done": true and no text.
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            return ""
        if data.get("done"):
            return ""
        chunk = data.get("response")
        return str(chunk) if chunk else ""


__all__ = ["OllamaClient"]
