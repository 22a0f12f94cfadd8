"""
LLM Module.

This package contains language-model gateway abstractions and implementations:
- Base LLM class and message types
- LLM factory
- Provider implementations (OpenAI, Ollama)
"""

from docqa.libs.llm.base_llm import BaseLLM, ChatResponse, Message
from docqa.libs.llm.llm_factory import LLMFactory
from docqa.libs.llm.ollama_llm import OllamaLLM, OllamaLLMError
from docqa.libs.llm.openai_llm import OpenAILLM, OpenAILLMError

__all__ = [
    "BaseLLM",
    "ChatResponse",
    "Message",
    "LLMFactory",
    "OllamaLLM",
    "OllamaLLMError",
    "OpenAILLM",
    "OpenAILLMError",
]
