"""LLM client exports."""

from .base import LLMClient, LLMError, StreamingHTTPClient, build_rag_prompt
from .factory import create_llm_client
from .ollama import OllamaClient
from .vllm import VLLMClient

__all__ = [
    "LLMClient",
    "LLMError",
    "StreamingHTTPClient",
    "build_rag_prompt",
    "create_llm_client",
    "OllamaClient",
    "VLLMClient",
]
