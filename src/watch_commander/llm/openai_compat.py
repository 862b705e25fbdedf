"""
OpenAI-compatible chat client.

Works against any server exposing `/v1/chat/completions` (llama.cpp,
LM Studio, vLLM, text-generation-webui). Default: http://localhost:8888/v1
"""

import json
import logging
import os
import urllib.error
import urllib.request

from .base import LLMClient, LLMResponse, Message

logger = logging.getLogger(__name__)


class OpenAICompatClient(LLMClient):
    """
    Client for an OpenAI-compatible local API.

    The model name is sent verbatim; most local servers ignore it and use
    whatever is loaded.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8888/v1",
        model: str = "llama3.1",
        timeout: float = 60,
        api_key: str | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root, with or without the trailing `/v1`
            model: Model name to request
            timeout: Request timeout in seconds
            api_key: Bearer token, if the server wants one
        """
        base_url = base_url.rstrip("/")
        if base_url.endswith("/chat/completions"):
            base_url = base_url[: -len("/chat/completions")]
        self.base_url = base_url
        self._model = model
        self.timeout = timeout
        self._api_key = api_key or os.environ.get("WATCH_COMMANDER_API_KEY")

    @property
    def model_name(self) -> str:
        return self._model

    def _make_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _extract_error_message(self, response: object) -> str:
        if not isinstance(response, dict):
            return f"Unexpected response type: {type(response).__name__}"

        err = response.get("error")
        if isinstance(err, dict):
            msg = err.get("message") or err.get("detail")
            if isinstance(msg, str) and msg:
                return msg
            return json.dumps(err)
        if isinstance(err, str) and err:
            return err

        return f"Unexpected response (missing 'choices'): keys={list(response.keys())}"

    def _make_request(self, endpoint: str, data: dict | None = None, method: str = "POST") -> dict:
        """Make HTTP request to the API."""
        url = f"{self.base_url}/{endpoint}"
        req = urllib.request.Request(
            url,
            data=json.dumps(data).encode("utf-8") if data is not None else None,
            headers=self._make_headers(),
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
                f"Cannot connect to generation server at {self.base_url}. "
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
        """Send chat completion request."""
        api_messages = []
        if system:
            api_messages.append({"role": "system", "content": system})
        api_messages.extend({"role": m.role, "content": m.content} for m in messages)

        response = self._make_request("chat/completions", {
            "model": self.model_name,
            "messages": api_messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "stream": False,
        })

        choices = response.get("choices") if isinstance(response, dict) else None
        if not choices:
            raise RuntimeError(self._extract_error_message(response))

        choice = choices[0]
        message = choice.get("message") or {}
        logger.debug("chat/completions finish_reason=%s", choice.get("finish_reason"))
        return LLMResponse(
            content=message.get("content") or "",
            finish_reason=choice.get("finish_reason") or "stop",
        )

    def is_available(self, timeout: float = 1.0) -> bool:
        """Check if the server answers `/models`.

        Uses a short timeout for fast availability detection during startup.
        """
        req = urllib.request.Request(f"{self.base_url}/models", headers=self._make_headers())
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                data = json.loads(resp.read().decode("utf-8"))
                return isinstance(data.get("data"), list)
        except (OSError, ValueError):
            return False
