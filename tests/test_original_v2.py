import io
import queue
import time

from PIL import Image

from deckhand.devices import Device, ProductId
from deckhand.original_v2 import (
    IMAGE_REPORT_HEADER_LENGTH,
    IMAGE_REPORT_LENGTH,
    IMAGE_REPORT_PAYLOAD_LENGTH,
    StreamDeckOriginalV2,
)
from deckhand.streamdeck import KeyImageFormat, create_deck


class RecordingDevice(Device):
    def __init__(self, features=None):
        self.features = dict(features or {})
        self.feature_writes = []
        self.writes = []
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
        return "recording"

    def vendor_id(self):
        return 0

    def product_id(self):
        return 0

    def write_feature(self, payload):
        self.feature_writes.append(bytes(payload))
        return len(payload)

    def read_feature(self, report_id, length):
        return self.features[report_id][:length]

    def write(self, data):
        self.writes.append(bytes(data))
        return len(data)

    def read(self, length):
        try:
            return self.reports.get(timeout=0.02)
        except queue.Empty:
            return b""


def _reassemble(writes):
    data = b""
    for report in writes:
        length = report[4] | (report[5] << 8)
        data += report[IMAGE_REPORT_HEADER_LENGTH : IMAGE_REPORT_HEADER_LENGTH + length]
    return data


def test_factory_builds_original_v2():
    deck = create_deck(ProductId.ORIGINAL_V2, RecordingDevice())
    assert isinstance(deck, StreamDeckOriginalV2)
    assert deck.key_count() == 15


def test_model_description():
    deck = StreamDeckOriginalV2(RecordingDevice())
    assert deck.key_layout() == (3, 5)
    assert deck.deck_type() == "Stream Deck Original"
    assert deck.key_image_format() == KeyImageFormat((72, 72), "JPEG", (True, True), 0)


def test_reset_feature_report():
    device = RecordingDevice()
    StreamDeckOriginalV2(device).reset()
    assert device.feature_writes == [bytes([0x03, 0x02]) + bytes(30)]


def test_brightness_feature_report_and_cap():
    device = RecordingDevice()
    deck = StreamDeckOriginalV2(device)
    deck.set_brightness(50)
    deck.set_brightness(150)
    assert device.feature_writes[0] == bytes([0x03, 0x08, 50]) + bytes(29)
    assert device.feature_writes[1][2] == 100
    assert all(len(report) == 32 for report in device.feature_writes)


def test_serial_number_strips_trailing_control_characters():
    report = b"\x06\x00TESTSERIAL01".ljust(32, b"\x00")
    deck = StreamDeckOriginalV2(RecordingDevice({0x06: report}))
    assert deck.get_serial_number() == "TESTSERIAL01"


def test_firmware_version_skips_header():
    report = b"\x05\x00\x00\x00\x00\x00" + b"X" * 26
    deck = StreamDeckOriginalV2(RecordingDevice({0x05: report}))
    assert deck.get_firmware_version() == "X" * 26


def test_key_image_split_into_reports():
    device = RecordingDevice()
    deck = StreamDeckOriginalV2(device)
    image = bytes(range(256)) * 8
    deck.set_key_image(4, image)
    assert len(device.writes) > 1
    assert all(len(report) == IMAGE_REPORT_LENGTH for report in device.writes)
    assert _reassemble(device.writes) == image
    for page, report in enumerate(device.writes):
        assert report[:3] == bytes([0x02, 0x07, 4])
        assert report[6] | (report[7] << 8) == page
        assert report[3] == (1 if page == len(device.writes) - 1 else 0)
    first = device.writes[0]
    assert first[4] | (first[5] << 8) == IMAGE_REPORT_PAYLOAD_LENGTH


def test_small_image_single_final_report():
    device = RecordingDevice()
    StreamDeckOriginalV2(device).set_key_image(0, b"abc")
    assert len(device.writes) == 1
    assert device.writes[0][:8] == bytes([0x02, 0x07, 0x00, 0x01, 0x03, 0x00, 0x00, 0x00])
    assert device.writes[0][8:11] == b"abc"


def test_empty_image_sends_blank_jpeg():
    device = RecordingDevice()
    StreamDeckOriginalV2(device).set_key_image(2, b"")
    data = _reassemble(device.writes)
    with Image.open(io.BytesIO(data)) as picture:
        assert picture.format == "JPEG"
        assert picture.size == (72, 72)


def test_out_of_range_key_is_ignored():
    device = RecordingDevice()
    deck = StreamDeckOriginalV2(device)
    deck.set_key_image(16, b"abc")
    deck.set_key_image(-1, b"abc")
    assert device.writes == []


def test_open_flushes_key_stream_and_reports_presses():
    device = RecordingDevice()
    deck = StreamDeckOriginalV2(device)
    events = []
    deck.set_key_callback(lambda d, key, pressed: events.append((key, pressed)))
    deck.open()
    try:
        assert device.writes[0] == b"\x02" + bytes(IMAGE_REPORT_LENGTH - 1)
        states = bytearray(15)
        states[2] = 1
        device.reports.put(b"\x01\x00\x00\x00" + bytes(states))
        deadline = time.monotonic() + 3
        while not events and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        deck.close()
    assert events == [(2, True)]
    assert deck.key_states() == [i == 2 for i in range(15)]