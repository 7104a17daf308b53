"""Driver for the 15-key Original V2 deck."""

from __future__ import annotations

import functools
import io

from PIL import Image

from deckhand.devices import Device, ProductId
from deckhand.streamdeck import StreamDeck, register_deck

IMAGE_REPORT_LENGTH = 1024
IMAGE_REPORT_HEADER_LENGTH = 8
IMAGE_REPORT_PAYLOAD_LENGTH = IMAGE_REPORT_LENGTH - IMAGE_REPORT_HEADER_LENGTH

_FEATURE_REPORT_LENGTH = 32
_CONTROL_CHARS = "".join(chr(code) for code in (*range(32), 127))


@functools.lru_cache(maxsize=None)
def _blank_key_image(width: int, height: int) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height)).save(buffer, format="JPEG")
    return buffer.getvalue()


def _feature(*head: int) -> bytes:
    return bytes(head).ljust(_FEATURE_REPORT_LENGTH, b"\x00")


@register_deck(ProductId.ORIGINAL_V2)
class StreamDeckOriginalV2(StreamDeck):
    """The Original V2 deck: 3 rows of 5 keys, 72x72 JPEG images."""

    KEY_COUNT = 15
    KEY_COLS = 5
    KEY_ROWS = 3
    KEY_PIXEL_WIDTH = 72
    KEY_PIXEL_HEIGHT = 72
    KEY_IMAGE_FORMAT = "JPEG"
    KEY_FLIP = (True, True)
    KEY_ROTATION = 0
    DECK_TYPE = "Stream Deck Original"
    DECK_VISUAL = True

    def __init__(self, device: Device) -> None:
        super().__init__(device)

    def reset(self) -> None:
        self._device.write_feature(_feature(0x03, 0x02))

    def set_brightness(self, percent: int) -> None:
        """Set the brightness; values above 100 are capped."""
        percent = min(max(int(percent), 0), 100)
        self._device.write_feature(_feature(0x03, 0x08, percent))

    def get_serial_number(self) -> str:
        data = self._device.read_feature(0x06, _FEATURE_REPORT_LENGTH)
        return bytes(data[2:]).decode("latin-1").rstrip(_CONTROL_CHARS)

    def get_firmware_version(self) -> str:
        data = self._device.read_feature(0x05, _FEATURE_REPORT_LENGTH)
        return bytes(data[6:]).decode("latin-1")

    def set_key_image(self, key_index: int, image: bytes = b"") -> None:
        """Send image data to a key in 1024-byte reports; indices out of range are ignored."""
        if key_index < 0 or key_index > self.KEY_COUNT:
            return
        data = bytes(image) or _blank_key_image(self.KEY_PIXEL_WIDTH, self.KEY_PIXEL_HEIGHT)
        for page, start in enumerate(range(0, len(data), IMAGE_REPORT_PAYLOAD_LENGTH)):
            chunk = data[start : start + IMAGE_REPORT_PAYLOAD_LENGTH]
            is_last = start + len(chunk) >= len(data)
            header = bytes(
                [
                    0x02,
                    0x07,
                    key_index,
                    0x01 if is_last else 0x00,
                    len(chunk) & 0xFF,
                    (len(chunk) >> 8) & 0xFF,
                    page & 0xFF,
                    (page >> 8) & 0xFF,
                ]
            )
            self._device.write((header + chunk).ljust(IMAGE_REPORT_LENGTH, b"\x00"))

    def _read_key_states(self) -> list[bool]:
        data = self._device.read(4 + self.KEY_COUNT)
        if not data:
            return []
        states = [bool(byte) for byte in data[4 : 4 + self.KEY_COUNT]]
        return states + [False] * (self.KEY_COUNT - len(states))

    def _reset_key_stream(self) -> None:
        self._device.write(b"\x02".ljust(IMAGE_REPORT_LENGTH, b"\x00"))