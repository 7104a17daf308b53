"""Keeps track of the attached decks and routes requests to them by serial number."""

from __future__ import annotations

import logging
import os
import threading
from typing import Optional

from deckhand.devices import Transport
from deckhand.manager import DeviceManager
from deckhand.module_loader import ModuleLoader
from deckhand.registered_device import RegisteredDevice

_log = logging.getLogger(__name__)


class DeviceController:
    """Discovers decks, ticks them and forwards configuration requests to the right one."""

    def __init__(
        self,
        module_loader: ModuleLoader,
        transport: Transport,
        home: Optional[str | os.PathLike[str]] = None,
    ) -> None:
        self._module_loader = module_loader
        self._manager = DeviceManager(transport)
        self._home = home
        self._lock = threading.RLock()
        self._devices: dict[str, RegisteredDevice] = {}

    def _find(self, device_id: str) -> Optional[RegisteredDevice]:
        return self._devices.get(device_id)

    def tick(self) -> None:
        """Tick every registered deck that is open."""
        with self._lock:
            for device in self._devices.values():
                if device.is_device_open():
                    device.tick()

    def device_inspector(self) -> None:
        """Open every attached deck and register it under its serial number."""
        for deck in self._manager.enumerate():
            deck.open()
            deck.reset()
            registered = RegisteredDevice(deck, self._module_loader, self._home)
            registered.init()
            serial = deck.get_serial_number()
            with self._lock:
                self._devices.setdefault(serial, registered)
            _log.info("registered deck %s", serial)

    def devices_list(self) -> list[str]:
        """Return the serial numbers of the registered decks in sorted order."""
        with self._lock:
            return sorted(self._devices)

    def set_device_brightness(self, device_id: str, brightness: int) -> None:
        with self._lock:
            device = self._find(device_id)
            if device is not None:
                device.set_brightness(brightness)

    def set_device_button_image(self, device_id: str, button: int, image: bytes) -> None:
        with self._lock:
            _log.debug("image of %d bytes for %s key %d", len(image), device_id, button)
            device = self._find(device_id)
            if device is not None:
                device.set_button_image(button, bytes(image))

    def set_device_button_label(self, device_id: str, button: int, label: str) -> None:
        with self._lock:
            device = self._find(device_id)
            if device is not None:
                device.set_button_label(button, label)

    def set_device_button_component(
        self, device_id: str, button: int, module: str, component: str
    ) -> None:
        with self._lock:
            device = self._find(device_id)
            if device is not None:
                device.set_button_component(button, module, component)

    def device_current_profile(self, device_id: str) -> str:
        """Return the name of the deck's active profile, or an empty string for an unknown deck."""
        with self._lock:
            device = self._find(device_id)
            return device.current_profile_name() if device is not None else ""

    def device_profiles(self, device_id: str) -> list[str]:
        with self._lock:
            device = self._find(device_id)
            return device.profiles() if device is not None else []

    def device_current_page(self, device_id: str) -> str:
        with self._lock:
            device = self._find(device_id)
            return device.current_page_name() if device is not None else ""

    def device_pages(self, device_id: str) -> list[str]:
        with self._lock:
            device = self._find(device_id)
            return device.pages() if device is not None else []