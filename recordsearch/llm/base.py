"""LLM client base classes."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from time import perf_counter
from typing import Any

import httpx

LOGGER = logging.getLogger(__name__)

_RAG_TEMPLATE = "Context:\n{context}\n---\nQuestion: {question}\n---\nAnswer:"

SYSTEM_PROMPT = (
    "You answer questions about database records. Each record in the context is one row rendered as text. "
    "Use only those records, and say that you cannot find the information when they do not contain it."
)


class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or rejects a request."""


def build_rag_prompt(question: str, context: Sequence[str] | None) -> str:
    """Render the question together with the retrieved record texts."""

    if not context:
        return question
    return _RAG_TEMPLATE.format(context="\n---\n".join(context), question=question)


class LLMClient(ABC):
    """Abstract LLM interface supporting streaming responses."""

    @abstractmethod
    def generate(self, prompt: str, *, context: Sequence[str] | None = None) -> Iterator[str]:
        """Yield response chunks for the given prompt."""


class StreamingHTTPClient(LLMClient):
    """POST a prompt to a model server and yield text from its line-delimited stream.

    Subclasses name the endpoint, build the request body and extract the text
    carried by each streamed line.
    """

    backend_name = "LLM"
    endpoint = ""

    def __init__(
        self,
        host: str,
        model: str,
        request_timeout: int,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._host = host.rstrip("/")
        self._model = model
        self._timeout = request_timeout
        self._transport = transport

    @abstractmethod
    def _payload(self, prompt: str, context: Sequence[str] | None) -> dict[str, Any]:
        """Request body for a streamed completion."""

    @abstractmethod
    def _parse_line(self, line: str) -> str:
        """Text carried by one streamed line, or an empty string."""

    def generate(self, prompt: str, *, context: Sequence[str] | None = None) -> Iterator[str]:
        url = f"{self._host}{self.endpoint}"
        timeout = httpx.Timeout(self._timeout, connect=self._timeout, read=None, write=self._timeout)
        LOGGER.info(
            "%s request started | model=%s context_records=%d prompt_chars=%d",
            self.backend_name,
            self._model,
            len(context or []),
            len(prompt),
        )
        start_time = perf_counter()
        chunk_count = 0
        try:
            with httpx.Client(timeout=timeout, transport=self._transport) as client:
                with client.stream("POST", url, json=self._payload(prompt, context)) as response:
                    if response.is_error:
                        response.read()
                    response.raise_for_status()
                    for line in response.iter_lines():
                        chunk = self._parse_line(line) if line else ""
                        if chunk:
                            chunk_count += 1
                            yield chunk
        except httpx.HTTPStatusError as exc:
            raise LLMError(
                f"{self.backend_name} generation failed with status {exc.response.status_code}: {exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise LLMError(f"Failed to reach {self.backend_name} server at {url}: {exc}") from exc
        finally:
            LOGGER.info(
                "%s request finished | model=%s duration=%.2fs chunks=%d",
                self.backend_name,
                self._model,
                perf_counter() - start_time,
                chunk_count,
            )


__all__ = ["LLMClient", "LLMError", "StreamingHTTPClient", "SYSTEM_PROMPT", "build_rag_prompt"]
