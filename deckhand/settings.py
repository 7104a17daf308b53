"""Typed configuration variables that components expose for editing."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Iterable


class ConfigVar(ABC):
    """A named, typed setting with validation on assignment."""

    type_name: ClassVar[str] = "String"

    def __init__(self, name: str, value: Any) -> None:
        self.name = name
        self.value = value

    @abstractmethod
    def _accepts(self, value: Any) -> bool:
        """Tell whether ``value`` may replace the current value."""

    def _fields(self) -> list[tuple[str, str]]:
        return [("type", self.type_name), ("name", self.name), ("value", self._format(self.value))]

    @staticmethod
    def _format(value: Any) -> str:
        return str(value)

    def info(self) -> str:
        """Describe the variable as a JSON object string."""
        return "{" + ",".join(f'"{key}": "{text}"' for key, text in self._fields()) + "}"

    def set(self, value: Any) -> None:
        """Assign ``value`` if it has the right type and passes the limits; ignore it otherwise."""
        if self._accepts(value):
            self.value = value


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ConfigVarInt(ConfigVar):
    """An integer bounded by an inclusive range."""

    def __init__(self, name: str, value: int, minimum: int, maximum: int) -> None:
        super().__init__(name, value)
        self.minimum = minimum
        self.maximum = maximum

    def _accepts(self, value: Any) -> bool:
        return _is_int(value) and self.minimum <= value <= self.maximum

    def _fields(self) -> list[tuple[str, str]]:
        return super()._fields() + [
            ("min", self._format(self.minimum)),
            ("max", self._format(self.maximum)),
        ]


class ConfigVarDouble(ConfigVar):
    """A floating-point number bounded by an inclusive range."""

    def __init__(self, name: str, value: float, minimum: float, maximum: float) -> None:
        super().__init__(name, value)
        self.minimum = minimum
        self.maximum = maximum

    @staticmethod
    def _format(value: Any) -> str:
        return f"{value:f}"

    def _accepts(self, value: Any) -> bool:
        return isinstance(value, float) and self.minimum <= value <= self.maximum

    def _fields(self) -> list[tuple[str, str]]:
        return super()._fields() + [
            ("min", self._format(self.minimum)),
            ("max", self._format(self.maximum)),
        ]


class ConfigVarString(ConfigVar):
    """A string with an optional maximum length; a limit of 0 means unlimited."""

    def __init__(self, name: str, value: str, max_size: int = 0) -> None:
        super().__init__(name, value)
        self.max_size = max_size

    def _accepts(self, value: Any) -> bool:
        return isinstance(value, str) and (self.max_size == 0 or len(value) <= self.max_size)

    def _fields(self) -> list[tuple[str, str]]:
        return super()._fields() + [("max_size", str(self.max_size))]


class ConfigVarBool(ConfigVar):
    """A boolean flag."""

    type_name = "Bool"

    def __init__(self, name: str, value: bool) -> None:
        super().__init__(name, value)

    @staticmethod
    def _format(value: Any) -> str:
        return "1" if value else "0"

    def _accepts(self, value: Any) -> bool:
        return isinstance(value, bool)


class ConfigVarCombo(ConfigVar):
    """A choice among indexed variants; the value is the chosen index."""

    type_name = "Combo"

    def __init__(self, name: str, value: int, variants: dict[int, str] | None = None) -> None:
        super().__init__(name, value)
        self.variants: dict[int, str] = dict(variants or {})

    def _accepts(self, value: Any) -> bool:
        return _is_int(value) and value in self.variants

    def info(self) -> str:
        head = ",".join(f'"{key}": "{text}"' for key, text in self._fields())
        variants = ",".join(f'{{"{index}": "{text}"}}' for index, text in self.variants.items())
        return "{" + head + ',"variants": [' + variants + "]}"


class ComponentSettings:
    """The collection of configuration variables owned by one component."""

    def __init__(self, variables: Iterable[ConfigVar] = ()) -> None:
        self._variables: dict[str, ConfigVar] = {var.name: var for var in variables}

    def __contains__(self, name: object) -> bool:
        return name in self._variables

    def __len__(self) -> int:
        return len(self._variables)

    def variables_list(self) -> list[str]:
        """Return the JSON description of every variable."""
        return [var.info() for var in self._variables.values()]

    def set_variable(self, name: str, value: Any) -> None:
        """Assign a variable; unknown names and invalid values are ignored."""
        var = self._variables.get(name)
        if var is not None:
            var.set(value)

    def get_variable_value(self, name: str) -> Any:
        """Return the variable's value, or None if there is no such variable."""
        var = self._variables.get(name)
        return None if var is None else var.value

    def change_limits(self, name: str, minimum: float, maximum: float) -> None:
        """Change the range of a numeric variable; other variables are left alone."""
        var = self._variables.get(name)
        if isinstance(var, (ConfigVarInt, ConfigVarDouble)):
            var.minimum = minimum
            var.maximum = maximum

    def add_combo_variant(self, name: str, index: int, value: str) -> None:
        """Add a variant to a combo variable unless the index is already taken."""
        var = self._variables.get(name)
        if isinstance(var, ConfigVarCombo) and index not in var.variants:
            var.variants[index] = value