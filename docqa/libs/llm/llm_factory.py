"""LLM provider registry, keyed by ``llm.provider``."""

from __future__ import annotations

from docqa.core.factory import ProviderFactory
from docqa.libs.llm.base_llm import BaseLLM


class LLMFactory(ProviderFactory[BaseLLM]):
    """Built-in providers: ``openai`` (hosted) and ``ollama`` (local)."""

    kind = "LLM"
    base_class = BaseLLM
    setting = ("llm", "provider")


def _register_builtin_providers() -> None:
    from docqa.libs.llm.ollama_llm import OllamaLLM
    from docqa.libs.llm.openai_llm import OpenAILLM

    LLMFactory.register_provider("openai", OpenAILLM)
    LLMFactory.register_provider("ollama", OllamaLLM)


_register_builtin_providers()
