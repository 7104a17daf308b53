"""Low-level device access: USB identifiers, the device and transport interfaces, and a debug device."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod

import zmq

DEFAULT_FAKE_OUT_ADDRESS = "tcp://127.0.0.1:33634"
DEFAULT_FAKE_IN_ADDRESS = "tcp://127.0.0.1:33633"


class VendorId(enum.IntEnum):
    """USB vendor IDs of known decks."""

    ELGATO = 0x0FD9


class ProductId(enum.IntEnum):
    """USB product IDs of known decks."""

    ORIGINAL = 0x0060
    ORIGINAL_V2 = 0x006D
    MINI = 0x0063
    XL = 0x006C
    XL_V2 = 0x008F
    MK2 = 0x0080
    PEDAL = 0x0086
    MINI_MK2 = 0x0090


class Device(ABC):
    """An attached device that a higher-level protocol can talk to."""

    @abstractmethod
    def open(self) -> None:
        """Open the device for input and output."""

    @abstractmethod
    def close(self) -> None:
        """Close the device for input and output."""

    @abstractmethod
    def is_open(self) -> bool:
        """Tell whether the device has been opened."""

    @abstractmethod
    def connected(self) -> bool:
        """Tell whether the device is still attached."""

    @abstractmethod
    def path(self) -> str:
        """Return the logical path that identifies the device on this system."""

    @abstractmethod
    def vendor_id(self) -> int:
        """Return the USB vendor ID."""

    @abstractmethod
    def product_id(self) -> int:
        """Return the USB product ID."""

    @abstractmethod
    def write_feature(self, payload: bytes) -> int:
        """Send a feature report whose first byte is the report ID; return bytes sent."""

    @abstractmethod
    def read_feature(self, report_id: int, length: int) -> bytes:
        """Read a feature report of at most ``length`` bytes."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Send an out report; return bytes sent."""

    @abstractmethod
    def read(self, length: int) -> bytes:
        """Read an in report of at most ``length`` bytes; empty if nothing was read."""


class Transport(ABC):
    """A back-end able to discover attached devices."""

    @abstractmethod
    def enumerate(self, vid: int, pid: int) -> list[Device]:
        """Return the devices matching the vendor and product IDs."""


class FakeDevice(Device):
    """A debug device that exchanges reports with an emulator over ZeroMQ sockets."""

    def __init__(
        self,
        out_address: str = DEFAULT_FAKE_OUT_ADDRESS,
        in_address: str = DEFAULT_FAKE_IN_ADDRESS,
    ) -> None:
        self._context = zmq.Context()
        self._sock_out = self._context.socket(zmq.PUSH)
        self._sock_in = self._context.socket(zmq.PULL)
        self._sock_out.bind(out_address)
        self._sock_in.connect(in_address)
        self.open_requested = False
        self.feature_reports: list[bytes] = []

    @property
    def out_endpoint(self) -> str:
        """The address the outgoing socket is actually bound to."""
        endpoint = self._sock_out.getsockopt(zmq.LAST_ENDPOINT)
        return endpoint.decode() if isinstance(endpoint, bytes) else str(endpoint)

    def dispose(self) -> None:
        """Release the sockets and their context."""
        if not self._context.closed:
            self._sock_out.close(linger=0)
            self._sock_in.close(linger=0)
            self._context.term()

    def __enter__(self) -> "FakeDevice":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    def open(self) -> None:
        """Record that the device was opened; the emulator is always reachable."""
        self.open_requested = True

    def close(self) -> None:
        """Record that the device was closed; the sockets stay usable."""
        self.open_requested = False

    def is_open(self) -> bool:
        return True

    def connected(self) -> bool:
        return True

    def path(self) -> str:
        return ""

    def vendor_id(self) -> int:
        return 0

    def product_id(self) -> int:
        return 0

    def write_feature(self, payload: bytes) -> int:
        """Keep the feature report; the emulator receives none, so no bytes count as sent."""
        self.feature_reports.append(bytes(payload))
        return 0

    def read_feature(self, report_id: int, length: int) -> bytes:
        if report_id == 0x05:
            return b"0" * length
        if report_id == 0x06:
            return b"F" * length
        raise ValueError(f"unsupported feature report {report_id:#04x}")

    def write(self, data: bytes) -> int:
        self._sock_out.send(bytes(data))
        return 0

    def read(self, length: int) -> bytes:
        message = self._sock_in.recv()
        return message if len(message) == length else b""


class FakeTransport(Transport):
    """A transport that reports one emulated Original V2 deck."""

    def __init__(
        self,
        out_address: str = DEFAULT_FAKE_OUT_ADDRESS,
        in_address: str = DEFAULT_FAKE_IN_ADDRESS,
    ) -> None:
        self.out_address = out_address
        self.in_address = in_address

    def enumerate(self, vid: int, pid: int) -> list[Device]:
        if pid == ProductId.ORIGINAL_V2:
            return [FakeDevice(self.out_address, self.in_address)]
        return []


def create_debug_transport() -> Transport:
    """Return the transport used to talk to the deck emulator."""
    return FakeTransport()