"""LLM backend clients for Watch Commander."""

import logging
import os
from typing import Literal

from .base import LLMClient, LLMResponse, Message
from .ollama import OllamaClient
from .openai_compat import OpenAICompatClient

logger = logging.getLogger(__name__)

__all__ = [
    "LLMClient",
    "LLMResponse",
    "Message",
    "OllamaClient",
    "OpenAICompatClient",
    "MockLLMClient",
    "create_llm_client",
    "detect_backend",
]


# -----------------------------------------------------------------------------
# Mock Client for Testing
# -----------------------------------------------------------------------------

class MockLLMClient(LLMClient):
    """
    Mock LLM client for testing.

    Allows configuring responses without actual API calls. A response that
    is an Exception instance is raised instead of returned, which is how
    tests simulate a dead server.
    """

    def __init__(
        self,
        responses: list[str | Exception] | None = None,
        model_name: str = "mock-model",
    ):
        """
        Initialize mock client.

        Args:
            responses: List of responses to return in order.
                       Cycles through if more calls than responses.
            model_name: Name to report as model_name property.
        """
        self._responses = responses or ["Mock response"]
        self._call_count = 0
        self._model_name = model_name
        self.calls: list[dict] = []  # Record of all calls made

    @property
    def model_name(self) -> str:
        return self._model_name

    def chat(
        self,
        messages: list[Message],
        system: str | None = None,
        temperature: float = 0.8,
        max_tokens: int = 2048,
    ) -> LLMResponse:
        """Return next mock response."""
        self.calls.append({
            "method": "chat",
            "messages": messages,
            "system": system,
            "temperature": temperature,
        })
        response = self._responses[self._call_count % len(self._responses)]
        self._call_count += 1
        if isinstance(response, Exception):
            raise response
        return LLMResponse(content=response)

    def set_responses(self, responses: list[str | Exception]) -> None:
        """Update the list of responses."""
        self._responses = responses
        self._call_count = 0

    def reset(self) -> None:
        """Reset call count and recorded calls."""
        self._call_count = 0
        self.calls.clear()

    @property
    def call_count(self) -> int:
        return len(self.calls)


# -----------------------------------------------------------------------------
# Backend Detection and Factory
# -----------------------------------------------------------------------------

BackendType = Literal["openai", "ollama", "auto"]


def detect_backend(
    openai_url: str = "http://localhost:8888/v1",
    ollama_url: str = "http://localhost:11434",
    model: str = "llama3.1",
    timeout: float = 60,
) -> tuple[str, LLMClient] | tuple[None, None]:
    """
    Auto-detect a running generation backend.

    Preference order: OpenAI-compatible server > Ollama

    Returns:
        Tuple of (backend_name, client) or (None, None) if nothing answers.
    """
    client: LLMClient = OpenAICompatClient(base_url=openai_url, model=model, timeout=timeout)
    if client.is_available():
        return ("openai", client)

    client = OllamaClient(base_url=ollama_url, model=model, timeout=timeout)
    if client.is_available():
        return ("ollama", client)

    return (None, None)


def create_llm_client(
    backend: BackendType = "openai",
    base_url: str | None = None,
    model: str = "llama3.1",
    timeout: float = 60,
) -> tuple[str, LLMClient | None]:
    """
    Create an LLM client for the specified backend.

    The client is not probed: a server that is down surfaces as a gateway
    failure on first use rather than blocking startup.

    Returns:
        Tuple of (backend_name, client). Client is None for an unknown
        backend or a failed auto-detection.
    """
    base_url = os.environ.get("WATCH_COMMANDER_LLM_URL", base_url)

    if backend == "auto":
        name, client = detect_backend(
            openai_url=base_url or "http://localhost:8888/v1",
            model=model,
            timeout=timeout,
        )
        if client is None:
            logger.warning("No generation backend detected")
        return (name or "none", client)

    if backend == "openai":
        return ("openai", OpenAICompatClient(
            base_url=base_url or "http://localhost:8888/v1", model=model, timeout=timeout,
        ))

    if backend == "ollama":
        return ("ollama", OllamaClient(
            base_url=base_url or "http://localhost:11434", model=model, timeout=timeout,
        ))

    logger.error("Unknown backend: %s", backend)
    return (backend, None)
