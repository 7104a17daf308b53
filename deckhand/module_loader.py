"""The registry of plug-in modules available to decks."""

from __future__ import annotations

from typing import Iterable, Optional

from deckhand.module_api import Component, Module, ProvidedProfile


class ModuleLoader:
    """Holds the available modules by name; a later module replaces an earlier one of the same name."""

    def __init__(self, modules: Iterable[Module] = ()) -> None:
        self._modules: dict[str, Module] = {}
        for module in modules:
            self._modules[module.name] = module

    def __len__(self) -> int:
        return len(self._modules)

    def modules_list(self) -> list[str]:
        """Return the names of all modules in sorted order."""
        return sorted(self._modules)

    def module_components_list(self, module: str) -> list[str]:
        """Return the component names of a module, or an empty list if it is unknown."""
        found = self._modules.get(module)
        return found.component_names() if found is not None else []

    def has_module_component(self, module_name: str, component_name: str) -> bool:
        found = self._modules.get(module_name)
        return found is not None and found.has_component(component_name)

    def get_module_component(self, module_name: str, component_name: str) -> Optional[Component]:
        """Create a new component, or return None if the module or component is unknown."""
        if not self.has_module_component(module_name, component_name):
            return None
        return self._modules[module_name].create_component(component_name)

    def get_module_profile(self, module_name: str) -> Optional[ProvidedProfile]:
        """Return the profile a module provides; raise KeyError for an unknown module."""
        try:
            module = self._modules[module_name]
        except KeyError:
            raise KeyError(f"unknown module {module_name!r}") from None
        return module.provided_profile()