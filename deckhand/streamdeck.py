"""The generic deck driver: key state polling, callbacks and a registry of deck models."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, ClassVar, Optional, TypeVar

from deckhand.devices import Device

_log = logging.getLogger(__name__)

_READ_IDLE_DELAY = 0.1
_JOIN_TIMEOUT = 1.0
_MIN_POLL_HZ = 1
_MAX_POLL_HZ = 1000


@dataclass(frozen=True)
class KeyImageFormat:
    """The image format a deck expects for its keys."""

    size: tuple[int, int]
    format: str
    flip: tuple[bool, bool]
    rotation: int


KeyCallback = Callable[["StreamDeck", int, bool], None]


class StreamDeck(ABC):
    """A deck attached through a device; subclasses describe a concrete model."""

    KEY_COUNT: ClassVar[int] = 0
    KEY_COLS: ClassVar[int] = 0
    KEY_ROWS: ClassVar[int] = 0
    KEY_PIXEL_WIDTH: ClassVar[int] = 0
    KEY_PIXEL_HEIGHT: ClassVar[int] = 0
    KEY_IMAGE_FORMAT: ClassVar[str] = ""
    KEY_FLIP: ClassVar[tuple[bool, bool]] = (False, False)
    KEY_ROTATION: ClassVar[int] = 0
    DECK_TYPE: ClassVar[str] = ""
    DECK_VISUAL: ClassVar[bool] = False

    def __init__(self, device: Device) -> None:
        self._device = device
        self._last_key_states: list[bool] = [False] * self.KEY_COUNT
        self._poll_hz = 20
        self._key_callback: Optional[KeyCallback] = None
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._reader: Optional[threading.Thread] = None

    @property
    def device(self) -> Device:
        """The underlying device."""
        return self._device

    @property
    def poll_frequency(self) -> int:
        """The configured poll frequency in hertz."""
        return self._poll_hz

    def __enter__(self) -> "StreamDeck":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @abstractmethod
    def reset(self) -> None:
        """Reset the deck to its idle state."""

    @abstractmethod
    def set_brightness(self, percent: int) -> None:
        """Set the backlight brightness in percent."""

    @abstractmethod
    def get_serial_number(self) -> str:
        """Read the deck's serial number."""

    @abstractmethod
    def get_firmware_version(self) -> str:
        """Read the deck's firmware version."""

    @abstractmethod
    def set_key_image(self, key_index: int, image: bytes) -> None:
        """Show encoded image data on a key; empty data shows a blank key."""

    @abstractmethod
    def _read_key_states(self) -> list[bool]:
        """Read one key state report; empty if nothing was available."""

    @abstractmethod
    def _reset_key_stream(self) -> None:
        """Flush whatever the deck has queued for the key stream."""

    def open(self) -> None:
        """Open the device and start polling the keys."""
        self._device.open()
        self._reset_key_stream()
        self._stop_reader()
        self._stop.clear()
        self._reader = threading.Thread(target=self._read_loop, name="deck-reader", daemon=True)
        self._reader.start()

    def close(self) -> None:
        """Stop polling and close the device."""
        self._stop.set()
        self._device.close()
        self._stop_reader()

    def _stop_reader(self) -> None:
        self._stop.set()
        reader = self._reader
        if reader is not None and reader is not threading.current_thread() and reader.is_alive():
            reader.join(_JOIN_TIMEOUT)
        self._reader = None

    def _read_loop(self) -> None:
        while not self._stop.is_set():
            try:
                new_states = self._read_key_states()
            except Exception:  # a failing device must not kill the process
                _log.exception("reading key states failed")
                self._stop.wait(_READ_IDLE_DELAY)
                continue
            if not new_states:
                self._stop.wait(_READ_IDLE_DELAY)
                continue
            with self._lock:
                callback = self._key_callback
                if callback is not None:
                    for index, (new, old) in enumerate(zip(new_states, self._last_key_states)):
                        if new != old:
                            callback(self, index, new)
                self._last_key_states = list(new_states)

    def is_open(self) -> bool:
        return self._device.is_open()

    def connected(self) -> bool:
        return self._device.connected()

    def vendor_id(self) -> int:
        return self._device.vendor_id()

    def product_id(self) -> int:
        return self._device.product_id()

    def id(self) -> str:
        """Return the device path, which tells decks apart."""
        return self._device.path()

    def key_count(self) -> int:
        return self.KEY_COUNT

    def deck_type(self) -> str:
        return self.DECK_TYPE

    def is_visual(self) -> bool:
        return self.DECK_VISUAL

    def key_layout(self) -> tuple[int, int]:
        """Return the layout as (rows, columns)."""
        return (self.KEY_ROWS, self.KEY_COLS)

    def key_image_format(self) -> KeyImageFormat:
        return KeyImageFormat(
            size=(self.KEY_PIXEL_WIDTH, self.KEY_PIXEL_HEIGHT),
            format=self.KEY_IMAGE_FORMAT,
            flip=self.KEY_FLIP,
            rotation=self.KEY_ROTATION,
        )

    def set_poll_frequency(self, hz: int) -> None:
        """Set the poll frequency, clamped to 1..1000 Hz."""
        self._poll_hz = min(max(hz, _MIN_POLL_HZ), _MAX_POLL_HZ)

    def set_key_callback(self, callback: Optional[KeyCallback]) -> None:
        """Set the function called as callback(deck, key, pressed) on each key change."""
        with self._lock:
            self._key_callback = callback

    def key_states(self) -> list[bool]:
        """Return the last known state of every key."""
        with self._lock:
            return list(self._last_key_states)


D = TypeVar("D", bound=type)

_REGISTRY: dict[int, type] = {}


def register_deck(product_id: int) -> Callable[[D], D]:
    """Class decorator registering a deck model for a USB product ID; the first one wins."""

    def decorator(cls: D) -> D:
        _REGISTRY.setdefault(int(product_id), cls)
        return cls

    return decorator


def create_deck(product_id: int, device: Device) -> Optional[StreamDeck]:
    """Create the deck model registered for the product ID, or None if there is none."""
    cls = _REGISTRY.get(int(product_id))
    return None if cls is None else cls(device)