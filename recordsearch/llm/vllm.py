"""vLLM client streaming via the OpenAI compatible REST API."""
from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import httpx

from ..config import Settings
from .base import SYSTEM_PROMPT, StreamingHTTPClient, build_rag_prompt

_DATA_PREFIX = "data:"
_DONE_MARKER = "[DONE]"


class VLLMClient(StreamingHTTPClient):
    """Stream chat completions from a vLLM server as server-sent events."""

    backend_name = "vLLM"
    endpoint = "/v1/chat/completions"

    def __init__(self, settings: Settings, *, transport: httpx.BaseTransport | None = None) -> None:
        super().__init__(
            settings.llm.vllm_host,
            settings.llm.vllm_model,
            settings.llm.request_timeout,
            transport=transport,
        )

    def _payload(self, prompt: str, context: Sequence[str] | None) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_rag_prompt(prompt, context)},
            ],
            "stream": True,
            "temperature": 0.1,
            "top_p": 0.9,
        }

    def _parse_line(self, line: str) -> str:
        if not line.startswith(_DATA_PREFIX):
            return ""
        data = line[len(_DATA_PREFIX) :].strip()
        if not data or data == _DONE_MARKER:
            return ""
        try:
            payload = json.loads(data)
        except json.JSONDecodeError:
            return ""
        choices = payload.get("choices") or []
        if not choices:
            return ""
        text = ((choices[0] or {}).get("delta") or {}).get("content")
        return str(text) if text else ""


__all__ = ["VLLMClient"]
