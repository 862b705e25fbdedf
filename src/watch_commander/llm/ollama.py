"""
Ollama client.

Talks to Ollama's native chat endpoint at localhost:11434/api/chat.
"""

import json
import logging
import urllib.error
import urllib.request

from .base import LLMClient, LLMResponse, Message

logger = logging.getLogger(__name__)


class OllamaClient(LLMClient):
    """
    Client for Ollama's local API.

    Default: http://localhost:11434
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1",
        timeout: float = 60,
    ):
        """
        Initialize Ollama client.

        Args:
            base_url: Ollama server root
            model: Model name (e.g., "llama3.1", "mistral", "qwen2.5")
            timeout: Request timeout in seconds
        """
        base_url = base_url.rstrip("/")
        for suffix in ("/api/chat", "/api", "/v1"):
            if base_url.endswith(suffix):
                base_url = base_url[: -len(suffix)]
                break
        self.base_url = base_url
        self._model = model
        self.timeout = timeout

    @property
    def model_name(self) -> str:
        return self._model

    def _make_request(self, endpoint: str, data: dict | None = None, method: str = "POST") -> dict:
        """Make HTTP request to Ollama API."""
        url = f"{self.base_url}/{endpoint}"
        req = urllib.request.Request(
            url,
            data=json.dumps(data).encode("utf-8") if data is not None else None,
            headers={"Content-Type": "application/json"},
            method=method,
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return json.loads(resp.read().decode("utf-8"))
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")[:300]
            raise RuntimeError(f"HTTP {e.code} from {url}: {body}") from e
        except (urllib.error.URLError, TimeoutError) as e:
            raise ConnectionError(
                f"Cannot connect to Ollama at {self.base_url}. "
                f"Make sure Ollama is running. "
                f"Error: {getattr(e, 'reason', e)}"
            ) from e
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Non-JSON reply from {url}: {e}") from e

    def chat(
        self,
        messages: list[Message],
        system: str | None = None,
        temperature: float = 0.8,
        max_tokens: int = 2048,
    ) -> LLMResponse:
        """Send a non-streaming chat request."""
        api_messages = []
        if system:
            api_messages.append({"role": "system", "content": system})
        api_messages.extend({"role": m.role, "content": m.content} for m in messages)

        response = self._make_request("api/chat", {
            "model": self.model_name,
            "messages": api_messages,
            "stream": False,
            "options": {"temperature": temperature, "num_predict": max_tokens},
        })

        if "error" in response:
            raise RuntimeError(f"Ollama error: {response['error']}")
        message = response.get("message")
        if not isinstance(message, dict):
            raise RuntimeError(f"Unexpected Ollama response: keys={list(response.keys())}")

        return LLMResponse(
            content=message.get("content") or "",
            finish_reason=response.get("done_reason") or "stop",
        )

    def is_available(self, timeout: float = 1.0) -> bool:
        """Check if Ollama is running and has at least one model pulled."""
        req = urllib.request.Request(f"{self.base_url}/api/tags")
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                data = json.loads(resp.read().decode("utf-8"))
                return bool(data.get("models"))
        except (OSError, ValueError):
            return False
