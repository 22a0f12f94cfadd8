"""Named provider registries for the pluggable layers.

Embedding, LLM, splitter and vector store backends are all chosen by a name
in settings. Each layer declares a :class:`ProviderFactory` subclass naming
its base class and the ``(section, option)`` settings key; registration,
lookup and construction are shared.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Generic, Tuple, TypeVar

if TYPE_CHECKING:
    from docqa.core.settings import Settings

P = TypeVar("P")


class ProviderFactory(Generic[P]):
    """Registry of provider classes for one layer.

    Subclasses set:
        kind: Label used in error messages (e.g. ``"Embedding"``).
        base_class: Class every registered provider must inherit from.
        setting: ``(section, option)`` naming the provider in settings.

    Every subclass gets its own registry.
    """

    kind: ClassVar[str]
    base_class: ClassVar[type]
    setting: ClassVar[Tuple[str, str]]

    _PROVIDERS: ClassVar[dict[str, type]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._PROVIDERS = {}

    @classmethod
    def register_provider(cls, name: str, provider_class: type[P]) -> None:
        """Register ``provider_class`` under ``name`` (case-insensitive).

        Raises:
            ValueError: If provider_class doesn't inherit from ``base_class``.
        """
        if not issubclass(provider_class, cls.base_class):
            raise ValueError(
                f"Provider class {provider_class.__name__} must inherit from "
                f"{cls.base_class.__name__}"
            )
        cls._PROVIDERS[name.lower()] = provider_class

    @classmethod
    def provider_name(cls, settings: Settings) -> str:
        """Read the configured provider name from ``settings``.

        Raises:
            ValueError: If the settings key is missing.
        """
        section, option = cls.setting
        try:
            return getattr(getattr(settings, section), option).lower()
        except AttributeError as e:
            raise ValueError(
                f"Missing required configuration: settings.{section}.{option}. "
                f"Please ensure '{section}.{option}' is specified in settings.yaml"
            ) from e

    @classmethod
    def create(cls, settings: Settings, **override_kwargs: Any) -> P:
        """Instantiate the configured provider.

        Args:
            settings: Application settings.
            **override_kwargs: Constructor arguments that take precedence
                over the values in settings.

        Raises:
            ValueError: If the configured provider is missing or unknown.
            RuntimeError: If the provider fails to initialize.
        """
        name = cls.provider_name(settings)
        provider_class = cls._PROVIDERS.get(name)
        if provider_class is None:
            available = ", ".join(cls.list_providers()) or "none"
            raise ValueError(
                f"Unsupported {cls.kind} provider: '{name}'. "
                f"Available providers: {available}"
            )

        try:
            return provider_class(settings=settings, **override_kwargs)
        except Exception as e:
            raise RuntimeError(
                f"Failed to instantiate {cls.kind} provider '{name}': {e}"
            ) from e

    @classmethod
    def list_providers(cls) -> list[str]:
        return sorted(cls._PROVIDERS)
