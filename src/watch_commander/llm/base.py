"""
Base LLM client abstraction.

Defines the interface that all generation backends must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal


@dataclass
class Message:
    """A message in the conversation."""
    role: Literal["system", "user", "assistant"]
    content: str


@dataclass
class LLMResponse:
    """Response from the LLM."""
    content: str
    finish_reason: str = "stop"


class LLMClient(ABC):
    """
    Abstract base class for generation backends.

    All backends must implement:
    - chat(): Send messages and get a response
    - model_name: The model identifier

    Transport failures raise ConnectionError; error payloads from a
    reachable server raise RuntimeError.
    """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """The model identifier."""
        pass

    @abstractmethod
    def chat(
        self,
        messages: list[Message],
        system: str | None = None,
        temperature: float = 0.8,
        max_tokens: int = 2048,
    ) -> LLMResponse:
        """
        Send a chat completion request.

        Args:
            messages: Conversation history
            system: System prompt
            temperature: Sampling temperature
            max_tokens: Maximum response tokens

        Returns:
            LLMResponse with the generated text
        """
        pass

    def is_available(self, timeout: float = 1.0) -> bool:
        """Whether the backend answers at all. Backends override this."""
        return True
