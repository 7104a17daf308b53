import queue
import threading
import time

from deckhand.devices import Device
from deckhand.streamdeck import KeyImageFormat, StreamDeck, create_deck, register_deck

TINY_PID = 0xBEE1


class MemoryDevice(Device):
    def __init__(self, path="mem-1"):
        self._path = path
        self.reports = queue.Queue()
        self.opened = False

    def open(self):
        self.opened = True

    def close(self):
        self.opened = False

    def is_open(self):
        return self.opened

    def connected(self):
        return True

    def path(self):
        return self._path

    def vendor_id(self):
        return 7

    def product_id(self):
        return 9

    def write_feature(self, payload):
        return len(payload)

    def read_feature(self, report_id, length):
        return bytes(length)

    def write(self, data):
        return len(data)

    def read(self, length):
        try:
            return self.reports.get(timeout=0.02)
        except queue.Empty:
            return b""


class TinyDeck(StreamDeck):
    KEY_COUNT = 3
    KEY_COLS = 3
    KEY_ROWS = 1
    KEY_PIXEL_WIDTH = 16
    KEY_PIXEL_HEIGHT = 8
    KEY_IMAGE_FORMAT = "BMP"
    KEY_FLIP = (False, True)
    KEY_ROTATION = 90
    DECK_TYPE = "Tiny"
    DECK_VISUAL = True

    def __init__(self, device):
        super().__init__(device)
        self.stream_resets = 0

    def reset(self):
        pass

    def set_brightness(self, percent):
        pass

    def get_serial_number(self):
        return "serial"

    def get_firmware_version(self):
        return "1"

    def set_key_image(self, key_index, image=b""):
        pass

    def _read_key_states(self):
        return [bool(b) for b in self.device.read(self.KEY_COUNT)]

    def _reset_key_stream(self):
        self.stream_resets += 1


register_deck(TINY_PID)(TinyDeck)


def _wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_static_description():
    deck = create_deck(TINY_PID, MemoryDevice("path-a"))
    assert deck.id() == "path-a"
    assert deck.key_count() == 3
    assert deck.key_layout() == (1, 3)
    assert deck.deck_type() == "Tiny"
    assert deck.is_visual() is True
    assert deck.vendor_id() == 7
    assert deck.product_id() == 9
    assert deck.key_image_format() == KeyImageFormat((16, 8), "BMP", (False, True), 90)


def test_initial_key_states_are_released():
    deck = create_deck(TINY_PID, MemoryDevice())
    assert deck.key_states() == [False, False, False]


def test_poll_frequency_is_clamped():
    deck = create_deck(TINY_PID, MemoryDevice())
    deck.set_poll_frequency(0)
    assert deck.poll_frequency == 1
    deck.set_poll_frequency(5000)
    assert deck.poll_frequency == 1000
    deck.set_poll_frequency(50)
    assert deck.poll_frequency == 50


def test_open_resets_stream_and_opens_device():
    device = MemoryDevice()
    deck = create_deck(TINY_PID, device)
    deck.open()
    try:
        assert deck.is_open() is True
        assert deck.stream_resets == 1
    finally:
        deck.close()
    assert deck.is_open() is False


def test_callback_reports_only_changes():
    device = MemoryDevice()
    deck = create_deck(TINY_PID, device)
    events = []
    lock = threading.Lock()

    def on_key(source, key, pressed):
        with lock:
            events.append((source is deck, key, pressed))

    deck.set_key_callback(on_key)
    deck.open()
    try:
        device.reports.put(b"\x01\x00\x00")
        device.reports.put(b"\x01\x01\x00")
        _wait_for(lambda: len(events) >= 2)
        device.reports.put(b"\x00\x01\x00")
        _wait_for(lambda: len(events) >= 3)
        _wait_for(lambda: deck.key_states() == [False, True, False])
        states = deck.key_states()
    finally:
        deck.close()
    assert states == [False, True, False]
    assert events == [(True, 0, True), (True, 1, True), (True, 0, False)]


def test_states_tracked_without_callback():
    device = MemoryDevice()
    deck = create_deck(TINY_PID, device)
    with deck:
        device.reports.put(b"\x00\x00\x01")
        _wait_for(lambda: deck.key_states() == [False, False, True])
        states = deck.key_states()
    assert states == [False, False, True]


def test_no_reading_after_close():
    device = MemoryDevice()
    deck = create_deck(TINY_PID, device)
    events = []
    deck.set_key_callback(lambda d, k, p: events.append(k))
    deck.open()
    deck.close()
    device.reports.put(b"\x01\x01\x01")
    time.sleep(0.3)
    assert events == []
    assert deck.key_states() == [False, False, False]


def test_registry_creates_registered_model():
    register_deck(0xBEEF)(TinyDeck)
    device = MemoryDevice("reg-path")
    deck = create_deck(0xBEEF, device)
    assert deck.device is device
    assert deck.key_count() == 3


def test_registry_first_registration_wins():
    class OtherDeck(TinyDeck):
        KEY_COUNT = 1

    register_deck(0xBEE0)(TinyDeck)
    register_deck(0xBEE0)(OtherDeck)
    assert create_deck(0xBEE0, MemoryDevice()).key_count() == 3


def test_registry_unknown_product_gives_none():
    assert create_deck(0xFFFE, MemoryDevice()) is None