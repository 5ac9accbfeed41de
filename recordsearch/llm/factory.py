"""Factory helpers for LLM clients."""
from __future__ import annotations

from ..config import Settings
from .base import LLMClient
from .ollama import OllamaClient
from .vllm import VLLMClient


def create_llm_client(settings: Settings) -> LLMClient:
    """Create the LLM client used to answer questions over indexed records."""

    if settings.llm.provider == "vllm":
        return VLLMClient(settings)
    return OllamaClient(settings)


__all__ = ["create_llm_client"]
