"""Ollama LLM implementation for local model inference.

This module provides the Ollama LLM implementation that works with
locally running Ollama instances (Llama, Mistral, ...).
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Iterator, List, Optional

import httpx

from docqa.core.errors import ServiceError
from docqa.libs.llm.base_llm import BaseLLM, ChatResponse, Message


class OllamaLLMError(ServiceError):
    """Raised when Ollama API call fails."""

    default_stage = "llm"


class OllamaLLM(BaseLLM):
    """Ollama LLM provider implementation for local inference.

    Attributes:
        base_url: The base URL for the Ollama server (default: http://localhost:11434).
        model: The model identifier to use (e.g., 'llama3', 'mistral').
        default_temperature: Default temperature for generation.
        default_max_tokens: Default max tokens for generation (num_predict in Ollama).
        timeout: Request timeout in seconds.

    Example:
        >>> from docqa.core.settings import load_settings
        >>> settings = load_settings('config/settings.yaml')
        >>> llm = OllamaLLM(settings)
        >>> response = llm.chat([Message(role='user', content='Hello')])
    """

    DEFAULT_BASE_URL = "http://localhost:11434"
    DEFAULT_TIMEOUT = 120.0  # Longer timeout for local inference

    def __init__(
        self,
        settings: Any,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the Ollama LLM provider.

        Args:
            settings: Application settings containing LLM configuration.
            base_url: Optional base URL override (falls back to env var OLLAMA_BASE_URL).
            timeout: Optional timeout override for requests.
            **kwargs: Additional configuration overrides.
        """
        self.model = settings.llm.model
        self.default_temperature = settings.llm.temperature
        self.default_max_tokens = settings.llm.max_tokens

        # Base URL: explicit > env var > default
        self.base_url = (
            base_url
            or os.environ.get("OLLAMA_BASE_URL")
            or self.DEFAULT_BASE_URL
        )

        self.timeout = timeout or self.DEFAULT_TIMEOUT

        self._extra_config = kwargs

    def chat(
        self,
        messages: List[Message],
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> ChatResponse:
        """Generate a chat completion using Ollama API.

        Raises:
            ValueError: If messages are invalid.
            OllamaLLMError: If API call fails.
        """
        self.validate_messages(messages)
        model = kwargs.get("model", self.model)
        payload = self._build_payload(messages, stream=False, **kwargs)

        try:
            response_data = self._call_api(payload)

            if "message" in response_data:
                content = response_data["message"]["content"]
            elif "response" in response_data:
                # Legacy generate endpoint response
                content = response_data["response"]
            else:
                raise OllamaLLMError(
                    "[Ollama] Unexpected response format: missing 'message' or 'response' key"
                )

            usage = None
            if "eval_count" in response_data or "prompt_eval_count" in response_data:
                usage = {
                    "prompt_tokens": response_data.get("prompt_eval_count", 0),
                    "completion_tokens": response_data.get("eval_count", 0),
                    "total_tokens": (
                        response_data.get("prompt_eval_count", 0) +
                        response_data.get("eval_count", 0)
                    ),
                }

            return ChatResponse(
                content=content,
                model=response_data.get("model", model),
                usage=usage,
                raw_response=response_data,
            )
        except KeyError as e:
            raise OllamaLLMError(
                f"[Ollama] Unexpected response format: missing key {e}"
            ) from e

    def stream(
        self,
        messages: List[Message],
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> Iterator[str]:
        """Stream the completion; Ollama sends one JSON object per line.

        Raises:
            OllamaLLMError: If the request fails or a line is malformed.
        """
        self.validate_messages(messages)
        payload = self._build_payload(messages, stream=True, **kwargs)
        url = f"{self.base_url.rstrip('/')}/api/chat"

        try:
            with httpx.Client(timeout=self.timeout) as client:
                with client.stream("POST", url, json=payload) as response:
                    if response.status_code != 200:
                        response.read()
                        raise OllamaLLMError(
                            f"[Ollama] API error (HTTP {response.status_code}): "
                            f"{self._parse_error_response(response)}"
                        )
                    for line in response.iter_lines():
                        if not line.strip():
                            continue
                        data = json.loads(line)
                        if "error" in data:
                            raise OllamaLLMError(f"[Ollama] Stream error: {data['error']}")
                        fragment = data.get("message", {}).get("content", "")
                        if fragment:
                            yield fragment
                        if data.get("done"):
                            break
        except httpx.TimeoutException as e:
            raise OllamaLLMError(
                f"[Ollama] Request timed out after {self.timeout} seconds."
            ) from e
        except httpx.ConnectError as e:
            raise OllamaLLMError(
                "[Ollama] Connection failed. Ensure Ollama is running locally. "
                "Start it with 'ollama serve' command."
            ) from e
        except httpx.RequestError as e:
            raise OllamaLLMError(f"[Ollama] Request failed: {type(e).__name__}") from e
        except json.JSONDecodeError as e:
            raise OllamaLLMError(f"[Ollama] Malformed stream line: {e}") from e

    def _build_payload(self, messages: List[Message], stream: bool, **kwargs: Any) -> Dict[str, Any]:
        # Ollama uses 'num_predict' instead of 'max_tokens'
        return {
            "model": kwargs.get("model", self.model),
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "stream": stream,
            "options": {
                "temperature": kwargs.get("temperature", self.default_temperature),
                "num_predict": kwargs.get("max_tokens", self.default_max_tokens),
            },
        }

    def _call_api(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Make the actual API call to Ollama.

        This method is separated to allow easy mocking in tests.

        Raises:
            OllamaLLMError: If the API call fails.
        """
        url = f"{self.base_url.rstrip('/')}/api/chat"
        headers = {
            "Content-Type": "application/json",
        }

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(url, json=payload, headers=headers)

                if response.status_code != 200:
                    error_detail = self._parse_error_response(response)
                    raise OllamaLLMError(
                        f"[Ollama] API error (HTTP {response.status_code}): {error_detail}"
                    )

                return response.json()
        except httpx.TimeoutException as e:
            raise OllamaLLMError(
                f"[Ollama] Request timed out after {self.timeout} seconds. "
                "Consider increasing timeout for larger models or longer responses."
            ) from e
        except httpx.ConnectError as e:
            raise OllamaLLMError(
                "[Ollama] Connection failed. Ensure Ollama is running locally. "
                "Start it with 'ollama serve' command."
            ) from e
        except httpx.RequestError as e:
            raise OllamaLLMError(
                f"[Ollama] Request failed: {type(e).__name__}"
            ) from e
        except ValueError as e:
            raise OllamaLLMError(f"[Ollama] Invalid JSON response: {e}") from e

    def _parse_error_response(self, response: Any) -> str:
        """Parse error details from API response."""
        try:
            error_data = response.json()
            if "error" in error_data:
                return str(error_data["error"])
            return response.text[:200] if response.text else "Unknown error"
        except ValueError:
            return response.text[:200] if response.text else "Unknown error"
