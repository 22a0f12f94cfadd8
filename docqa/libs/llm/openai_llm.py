"""OpenAI LLM implementation for the hosted chat completions API."""

from __future__ import annotations

import os
from typing import Any, Dict, Iterator, List, Optional

import openai

from docqa.core.errors import ServiceError
from docqa.libs.llm.base_llm import BaseLLM, ChatResponse, Message


class OpenAILLMError(ServiceError):
    """Raised when the OpenAI chat completions API call fails."""

    default_stage = "llm"


class OpenAILLM(BaseLLM):
    """OpenAI chat model provider.

    Works with any OpenAI-compatible endpoint via ``base_url``.

    Attributes:
        model: Model identifier (e.g. 'gpt-3.5-turbo').
        default_temperature: Default sampling temperature.
        default_max_tokens: Default completion token limit.
    """

    DEFAULT_BASE_URL = "https://api.openai.com/v1"

    def __init__(
        self,
        settings: Any,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the OpenAI LLM provider.

        Raises:
            ValueError: If no API key is available.
        """
        self.model = settings.llm.model
        self.default_temperature = settings.llm.temperature
        self.default_max_tokens = settings.llm.max_tokens

        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError(
                "OpenAI API key not provided. Set OPENAI_API_KEY or pass api_key explicitly."
            )

        self.base_url = base_url or os.environ.get("OPENAI_BASE_URL") or self.DEFAULT_BASE_URL
        self.timeout = timeout
        self._extra_config = kwargs

    def chat(
        self,
        messages: List[Message],
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> ChatResponse:
        """Generate a chat completion.

        Raises:
            ValueError: If messages are invalid.
            OpenAILLMError: If the API call fails.
        """
        self.validate_messages(messages)
        request = self._build_request(messages, **kwargs)

        try:
            completion = self._client().chat.completions.create(**request)
        except openai.OpenAIError as e:
            raise self._wrap_error(e) from e

        if not completion.choices:
            raise OpenAILLMError("[OpenAI] Response contained no choices")

        usage = None
        if getattr(completion, "usage", None) is not None:
            usage = {
                "prompt_tokens": completion.usage.prompt_tokens,
                "completion_tokens": completion.usage.completion_tokens,
                "total_tokens": completion.usage.total_tokens,
            }

        return ChatResponse(
            content=completion.choices[0].message.content or "",
            model=getattr(completion, "model", request["model"]),
            usage=usage,
            raw_response=completion,
        )

    def stream(
        self,
        messages: List[Message],
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> Iterator[str]:
        """Yield completion fragments as the API streams them.

        Raises:
            OpenAILLMError: If the request or the stream fails.
        """
        self.validate_messages(messages)
        request = self._build_request(messages, **kwargs)

        try:
            stream = self._client().chat.completions.create(stream=True, **request)
            for event in stream:
                if not event.choices:
                    continue
                fragment = event.choices[0].delta.content
                if fragment:
                    yield fragment
        except openai.OpenAIError as e:
            raise self._wrap_error(e) from e

    def _client(self) -> openai.OpenAI:
        client_kwargs: Dict[str, Any] = {"api_key": self.api_key, "base_url": self.base_url}
        if self.timeout is not None:
            client_kwargs["timeout"] = self.timeout
        return openai.OpenAI(**client_kwargs)

    def _build_request(self, messages: List[Message], **kwargs: Any) -> Dict[str, Any]:
        return {
            "model": kwargs.get("model", self.model),
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": kwargs.get("temperature", self.default_temperature),
            "max_tokens": kwargs.get("max_tokens", self.default_max_tokens),
        }

    def _wrap_error(self, error: Exception) -> OpenAILLMError:
        if isinstance(error, openai.APIStatusError):
            return OpenAILLMError(
                f"[OpenAI] API error (HTTP {error.status_code}): {error.message}"
            )
        if isinstance(error, openai.APITimeoutError):
            return OpenAILLMError("[OpenAI] Request timed out")
        if isinstance(error, openai.APIConnectionError):
            return OpenAILLMError(f"[OpenAI] Connection to {self.base_url} failed")
        return OpenAILLMError(f"[OpenAI] API call failed: {type(error).__name__}: {error}")
