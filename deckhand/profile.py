"""Deck profiles: pages of key assignments stored as JSON files."""

from __future__ import annotations

import dataclasses
import json
import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class KeyProfile:
    """What a single key shows and does."""

    custom_image: str = ""
    custom_label: str = ""
    module_name: str = ""
    component_name: str = ""

    @classmethod
    def with_label(cls, label: str) -> "KeyProfile":
        return cls(custom_label=label)

    @classmethod
    def with_image(cls, image: str) -> "KeyProfile":
        return cls(custom_image=image)

    @classmethod
    def with_component(cls, module_name: str, component_name: str) -> "KeyProfile":
        return cls(module_name=module_name, component_name=component_name)


@dataclass
class _Page:
    name: str
    keys: dict[int, KeyProfile] = field(default_factory=dict)


class Profile:
    """A profile file: brightness, pages of keys and the current page."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._name = self.path.stem
        with self.path.open(encoding="utf-8") as handle:
            data = json.load(handle)
        try:
            self._brightness = int(data["brightness"])
            current_name = data["page"]
            self._pages: dict[str, _Page] = {}
            for json_page in data["pages"]:
                page = _Page(json_page["name"])
                for json_key in json_page["keys"]:
                    page.keys.setdefault(
                        int(json_key["number"]),
                        KeyProfile(
                            custom_image=json_key["image"],
                            custom_label=json_key["label"],
                            module_name=json_key["module"],
                            component_name=json_key["component"],
                        ),
                    )
                self._pages.setdefault(page.name, page)
        except (KeyError, TypeError) as exc:
            raise ValueError(f"malformed profile {self.path}: {exc}") from exc
        if current_name not in self._pages:
            raise ValueError(f"profile {self.path} has no page {current_name!r}")
        self._current_page = self._pages[current_name]

    def save(self) -> None:
        """Write the profile back to its file."""
        data = {
            "brightness": self._brightness,
            "page": self._current_page.name,
            "pages": [
                {
                    "name": name,
                    "keys": [
                        {
                            "number": number,
                            "image": key.custom_image,
                            "label": key.custom_label,
                            "module": key.module_name,
                            "component": key.component_name,
                        }
                        for number, key in sorted(page.keys.items())
                    ],
                }
                for name, page in sorted(self._pages.items())
            ],
        }
        text = json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        self.path.write_text(text, encoding="utf-8")

    def _key(self, button: int) -> KeyProfile:
        return self._current_page.keys.setdefault(button, KeyProfile())

    def set_brightness(self, value: int) -> None:
        self._brightness = value
        self.save()

    def set_button_image(self, button: int, image_path: str | os.PathLike[str]) -> None:
        self._key(button).custom_image = str(image_path)
        self.save()

    def set_button_label(self, button: int, label: str) -> None:
        self._key(button).custom_label = label
        self.save()

    def set_button_component(self, button: int, module_name: str, component_name: str) -> None:
        key = self._key(button)
        key.module_name = module_name
        key.component_name = component_name
        self.save()

    def key_profile(self, key: int) -> KeyProfile | None:
        """Return a copy of the key's settings on the current page, or None."""
        found = self._current_page.keys.get(key)
        return None if found is None else dataclasses.replace(found)

    def pages(self) -> list[str]:
        return sorted(self._pages)

    def name(self) -> str:
        return self._name

    def current_page_name(self) -> str:
        return self._current_page.name

    def brightness(self) -> int:
        return self._brightness