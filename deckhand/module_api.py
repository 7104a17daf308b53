"""Interfaces for plug-in modules, their components and the key they own."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, TypeVar

from deckhand.settings import ComponentSettings, ConfigVar

if TYPE_CHECKING:
    from deckhand.images import TargetImageParameters


@dataclass
class ProvidedProfile:
    """A key-to-component mapping that a module offers as a ready profile."""

    key_mapping: dict[int, str] = field(default_factory=dict)


class DeviceButton(ABC):
    """The view of a deck that a component gets: limited to its own key."""

    @abstractmethod
    def id(self) -> str:
        """Return the identifier of the deck."""

    @abstractmethod
    def owned_key(self) -> int:
        """Return the index of the key the component sits on."""

    @abstractmethod
    def set_brightness(self, brightness: int) -> None:
        """Change the brightness of the whole deck."""

    @abstractmethod
    def current_profile_name(self) -> str:
        """Return the name of the active profile."""

    @abstractmethod
    def set_profile(self, profile_name: str) -> None:
        """Switch the deck to another profile."""

    @abstractmethod
    def update_button_image(self) -> None:
        """Redraw the owned key."""

    @abstractmethod
    def image_format(self) -> "TargetImageParameters":
        """Return the image parameters the deck expects."""


class Component(ABC):
    """Behaviour attached to one key of a deck."""

    def __init__(self) -> None:
        self._settings = ComponentSettings(self.config_variables())

    def config_variables(self) -> Iterable[ConfigVar]:
        """Return the configuration variables of this component."""
        return ()

    def variables_list(self) -> list[str]:
        return self._settings.variables_list()

    def set_variable(self, name: str, value: Any) -> None:
        self._settings.set_variable(name, value)

    def variable_value(self, name: str) -> Any:
        return self._settings.get_variable_value(name)

    @abstractmethod
    def init(self, device: DeviceButton) -> None:
        """Bind the component to the key it controls."""

    @abstractmethod
    def name(self) -> str:
        """Return a human-readable name."""

    @abstractmethod
    def image(self) -> bytes:
        """Return encoded image data for the key, or empty bytes for none."""

    @abstractmethod
    def tick(self) -> None:
        """Do periodic work."""

    @abstractmethod
    def action_press(self) -> None:
        """React to the key going down."""

    @abstractmethod
    def action_release(self) -> None:
        """React to the key going up."""


C = TypeVar("C", bound=type)


class Module:
    """A named set of component factories and an optional provided profile."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._components: dict[str, Callable[[], Component]] = {}
        self._provided_profile: ProvidedProfile | None = None

    def component(self, cls: C) -> C:
        """Class decorator registering a component under its class name."""
        self._components.setdefault(cls.__name__, cls)
        return cls

    def create_component(self, name: str) -> Component:
        """Create a new instance of the named component."""
        try:
            factory = self._components[name]
        except KeyError:
            raise KeyError(f"module {self.name!r} has no component {name!r}") from None
        return factory()

    def has_component(self, name: str) -> bool:
        return name in self._components

    def component_names(self) -> list[str]:
        return sorted(self._components)

    def set_provided_profile(self, key_mapping: Mapping[int, str]) -> None:
        """Store a provided profile, keeping only keys mapped to known components."""
        self._provided_profile = ProvidedProfile(
            {key: comp for key, comp in sorted(key_mapping.items()) if comp in self._components}
        )

    def provided_profile(self) -> ProvidedProfile | None:
        return self._provided_profile