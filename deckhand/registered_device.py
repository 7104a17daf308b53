"""A deck in use: its profile, the components on its keys and the key events it receives."""

from __future__ import annotations

import logging
import os
import threading
from typing import Optional

from deckhand.config import (
    create_new_profile,
    deck_profiles,
    default_profile_name,
    load_deck_profile,
    save_button_image,
)
from deckhand.images import (
    TargetImageParameters,
    apply_label_on_image,
    create_empty_image,
    load_raw_image,
    prepare_image_for_deck,
)
from deckhand.module_api import Component, DeviceButton, ProvidedProfile
from deckhand.module_loader import ModuleLoader
from deckhand.streamdeck import StreamDeck

_log = logging.getLogger(__name__)


class RegisteredDevice:
    """Binds a deck to its current profile and runs the components placed on its keys."""

    def __init__(
        self,
        deck: StreamDeck,
        module_loader: ModuleLoader,
        home: Optional[str | os.PathLike[str]] = None,
    ) -> None:
        self._deck = deck
        self._module_loader = module_loader
        self._home = home
        self._serial = deck.get_serial_number()
        self._profile = load_deck_profile(
            self._serial, default_profile_name(self._serial, home), home
        )
        self._image_params = TargetImageParameters()
        self._key_mapping: dict[int, Component] = {}
        self._lock = threading.Lock()
        self._events: list[tuple[int, bool]] = []

    def init(self) -> None:
        """Start receiving key events and apply the current profile to the deck."""
        self._deck.set_key_callback(self._callback)
        self._image_params = self.image_format()
        self._refresh()

    def tick(self) -> None:
        """Dispatch queued key events to components, then tick every component."""
        with self._lock:
            events, self._events = self._events, []
        for key, pressed in events:
            _log.debug("[%s]: key %d %s", self._serial, key, "down" if pressed else "up")
            component = self._key_mapping.get(key)
            if component is None:
                continue
            if pressed:
                component.action_press()
            else:
                component.action_release()
        for component in list(self._key_mapping.values()):
            component.tick()

    def id(self) -> str:
        return self._deck.id()

    def is_device_open(self) -> bool:
        return self._deck.is_open()

    def set_brightness(self, brightness: int) -> None:
        self._profile.set_brightness(brightness)
        self._deck.set_brightness(brightness)

    def set_button_image(self, key: int, image: bytes) -> None:
        """Cache the image data, store it in the profile and redraw the key."""
        saved = save_button_image(self._serial, image, self._home)
        self._profile.set_button_image(key, saved)
        self.update_button_image(key)

    def set_button_label(self, key: int, label: str) -> None:
        self._profile.set_button_label(key, label)
        self.update_button_image(key)

    def set_button_component(self, key: int, module: str, component: str) -> None:
        """Place a component on a key; unknown modules or components are ignored."""
        if self._module_loader.has_module_component(module, component):
            self._profile.set_button_component(key, module, component)
            self._update_button_component(key)
            self.update_button_image(key)

    def current_profile_name(self) -> str:
        return self._profile.name()

    def set_profile(self, profile_name: str) -> None:
        """Save the current profile, load another one and apply it."""
        self._profile.save()
        self._profile = load_deck_profile(self._serial, profile_name, self._home)
        self._refresh()

    def profiles(self) -> list[str]:
        return deck_profiles(self._serial, self._home)

    def current_page_name(self) -> str:
        return self._profile.current_page_name()

    def pages(self) -> list[str]:
        return self._profile.pages()

    def image_format(self) -> TargetImageParameters:
        fmt = self._deck.key_image_format()
        return TargetImageParameters(fmt.size[0], fmt.size[1], fmt.flip[0], fmt.flip[1])

    def update_button_image(self, key: int) -> None:
        """Compose the key's image from its component, custom image and label, and show it."""
        key_profile = self._profile.key_profile(key)
        if key_profile is None:
            self._deck.set_key_image(key, b"")
            return

        image_data = b""
        if key_profile.module_name and key_profile.component_name:
            component = self._key_mapping.get(key)
            if component is not None:
                image_data = bytes(component.image())

        if key_profile.custom_image:
            try:
                image_data = load_raw_image(key_profile.custom_image)
            except (OSError, ValueError):
                _log.warning("cannot load image %s for key %d", key_profile.custom_image, key)

        if key_profile.custom_label:
            if not image_data:
                image_data = create_empty_image(self._image_params)
            image_data = apply_label_on_image(image_data, key_profile.custom_label)

        if image_data:
            self._deck.set_key_image(key, prepare_image_for_deck(image_data, self._image_params))

    def _callback(self, deck: StreamDeck, key: int, pressed: bool) -> None:
        with self._lock:
            self._events.append((key, pressed))

    def _refresh(self) -> None:
        self._deck.reset()
        self._key_mapping.clear()
        for key in range(self._deck.key_count()):
            self._update_button_component(key)
            self.update_button_image(key)

    def _update_button_component(self, key: int) -> None:
        self._key_mapping.pop(key, None)

        key_profile = self._profile.key_profile(key)
        if key_profile is None:
            return
        if not key_profile.module_name or not key_profile.component_name:
            return

        component = self._module_loader.get_module_component(
            key_profile.module_name, key_profile.component_name
        )
        if component is None:
            return
        component.init(RestrictedDevice(key, self))

        provided = self._module_loader.get_module_profile(key_profile.module_name)
        if provided is not None:
            self._add_profile_from_module(key_profile.module_name, provided)

        self._key_mapping[key] = component

    def _add_profile_from_module(self, module: str, provided: ProvidedProfile) -> None:
        profile = create_new_profile(self._serial, module, self._home)
        for key, component in provided.key_mapping.items():
            profile.set_button_component(key, module, component)
        profile.save()


class RestrictedDevice(DeviceButton):
    """The view of a registered deck handed to the component on one key."""

    def __init__(self, key: int, device: RegisteredDevice) -> None:
        self._key = key
        self._device = device

    def id(self) -> str:
        return self._device.id()

    def owned_key(self) -> int:
        return self._key

    def set_brightness(self, brightness: int) -> None:
        self._device.set_brightness(brightness)

    def current_profile_name(self) -> str:
        return self._device.current_profile_name()

    def set_profile(self, profile_name: str) -> None:
        self._device.set_profile(profile_name)

    def update_button_image(self) -> None:
        self._device.update_button_image(self._key)

    def image_format(self) -> TargetImageParameters:
        return self._device.image_format()