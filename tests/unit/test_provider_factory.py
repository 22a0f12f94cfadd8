"""Tests for the shared provider registry behind every layer factory."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from docqa.core.factory import ProviderFactory
from docqa.libs.embedding.embedding_factory import EmbeddingFactory
from docqa.libs.llm.llm_factory import LLMFactory
from docqa.libs.splitter.splitter_factory import SplitterFactory
from docqa.libs.vector_store.vector_store_factory import VectorStoreFactory


class Greeter:
    def __init__(self, settings, greeting: str = "hello") -> None:
        self.settings = settings
        self.greeting = greeting


class LoudGreeter(Greeter):
    pass


class BrokenGreeter(Greeter):
    def __init__(self, settings, **kwargs) -> None:
        raise ValueError("no voice")


class GreeterFactory(ProviderFactory[Greeter]):
    kind = "Greeter"
    base_class = Greeter
    setting = ("greeting", "style")


@pytest.fixture(autouse=True)
def registry():
    GreeterFactory.register_provider("Loud", LoudGreeter)
    GreeterFactory.register_provider("broken", BrokenGreeter)
    yield
    GreeterFactory._PROVIDERS.clear()


def _settings(style: str) -> SimpleNamespace:
    return SimpleNamespace(greeting=SimpleNamespace(style=style))


def test_names_are_case_insensitive_and_overrides_reach_constructor() -> None:
    greeter = GreeterFactory.create(_settings("LOUD"), greeting="hi")

    assert isinstance(greeter, LoudGreeter)
    assert greeter.greeting == "hi"


def test_each_layer_keeps_its_own_registry() -> None:
    assert GreeterFactory.list_providers() == ["broken", "loud"]
    assert "loud" not in EmbeddingFactory.list_providers()
    assert EmbeddingFactory.list_providers() == LLMFactory.list_providers() == ["ollama", "openai"]
    assert SplitterFactory.list_providers() == ["recursive", "sliding_window"]
    assert VectorStoreFactory.list_providers() == ["chroma", "local"]


def test_missing_setting_names_the_key() -> None:
    with pytest.raises(ValueError, match=r"settings\.greeting\.style"):
        GreeterFactory.create(SimpleNamespace(greeting=None))


def test_unknown_provider_lists_available() -> None:
    with pytest.raises(ValueError, match="Unsupported Greeter provider: 'quiet'. Available providers: broken, loud"):
        GreeterFactory.create(_settings("quiet"))


def test_constructor_failure_is_wrapped() -> None:
    with pytest.raises(RuntimeError, match="Failed to instantiate Greeter provider 'broken': no voice"):
        GreeterFactory.create(_settings("broken"))


def test_register_rejects_foreign_classes() -> None:
    with pytest.raises(ValueError, match="must inherit from Greeter"):
        GreeterFactory.register_provider("other", SimpleNamespace)
