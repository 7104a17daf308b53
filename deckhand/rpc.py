"""MessagePack-RPC server exposing the device controller, and a client for it."""

from __future__ import annotations

import itertools
import logging
import socket
import socketserver
import threading
from typing import Any, Callable, Optional, Sequence

import msgpack

from deckhand.controller import DeviceController
from deckhand.module_loader import ModuleLoader

_log = logging.getLogger(__name__)

DEFAULT_SERVER_PORT = 27015
DEFAULT_CLIENT_HOST = "127.0.0.1"
DEFAULT_CLIENT_PORT = 11925

_LISTEN_HOST = "0.0.0.0"
_REQUEST = 0
_RESPONSE = 1
_NOTIFY = 2
_RECV_SIZE = 65536


class RpcError(Exception):
    """A remote call failed or was malformed."""


class _Handler(socketserver.BaseRequestHandler):
    def handle(self) -> None:
        rpc: RpcServer = self.server.rpc  # type: ignore[attr-defined]
        unpacker = msgpack.Unpacker(raw=False)
        packer = msgpack.Packer(use_bin_type=True)
        while True:
            try:
                chunk = self.request.recv(_RECV_SIZE)
            except OSError:
                return
            if not chunk:
                return
            unpacker.feed(chunk)
            for message in unpacker:
                reply = rpc._handle_message(message)
                if reply is not None:
                    self.request.sendall(packer.pack(reply))


class _TcpServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True
    block_on_close = False

    def __init__(self, address: tuple[str, int], rpc: "RpcServer") -> None:
        self.rpc = rpc
        super().__init__(address, _Handler)


class RpcServer:
    """Serves the controller's operations over MessagePack-RPC on a TCP port."""

    def __init__(
        self,
        port: int,
        controller: DeviceController,
        module_loader: ModuleLoader,
    ) -> None:
        self._controller = controller
        self._module_loader = module_loader
        self._methods: dict[str, tuple[int, Callable[..., Any]]] = {
            "getComponentsList": (0, self._components_list),
            "getDevicesList": (0, controller.devices_list),
            "getDeviceProfiles": (1, controller.device_profiles),
            "getDevicePages": (1, controller.device_pages),
            "getDeviceCurrentPage": (1, controller.device_current_page),
            "getDeviceCurrentProfile": (1, controller.device_current_profile),
            "setDeviceBrightness": (2, controller.set_device_brightness),
            "setDeviceButtonImage": (3, self._set_button_image),
            "setDeviceButtonLabel": (3, controller.set_device_button_label),
            "setDeviceButtonComponent": (4, controller.set_device_button_component),
        }
        self._server = _TcpServer((_LISTEN_HOST, port), self)
        self._state_lock = threading.Lock()
        self._serving = False
        self._closed = False

    @property
    def port(self) -> int:
        """The port the server is bound to."""
        return self._server.server_address[1]

    def _components_list(self) -> dict[str, list[str]]:
        return {
            name: self._module_loader.module_components_list(name)
            for name in self._module_loader.modules_list()
        }

    def _set_button_image(self, device_id: str, button: int, image: Any) -> None:
        self._controller.set_device_button_image(device_id, button, bytes(image))

    def dispatch(self, method: str, params: Sequence[Any]) -> Any:
        """Call a bound method with positional parameters and return its result."""
        try:
            arity, func = self._methods[method]
        except (KeyError, TypeError):
            raise RpcError(f"unknown method {method!r}") from None
        if not isinstance(params, (list, tuple)):
            raise RpcError("parameters must be an array")
        if len(params) != arity:
            raise RpcError(f"{method} takes {arity} arguments, {len(params)} given")
        return func(*params)

    def _handle_message(self, message: Any) -> Optional[list[Any]]:
        if not isinstance(message, (list, tuple)) or not message:
            _log.warning("malformed message %r", message)
            return None
        kind = message[0]
        if kind == _REQUEST and len(message) == 4:
            _, msgid, method, params = message
            try:
                return [_RESPONSE, msgid, None, self.dispatch(method, params)]
            except RpcError as exc:
                return [_RESPONSE, msgid, str(exc), None]
            except Exception as exc:
                _log.exception("call to %s failed", method)
                return [_RESPONSE, msgid, f"{type(exc).__name__}: {exc}", None]
        if kind == _NOTIFY and len(message) == 3:
            _, method, params = message
            try:
                self.dispatch(method, params)
            except Exception:
                _log.exception("notification %s failed", method)
            return None
        _log.warning("malformed message %r", message)
        return None

    def start(self) -> int:
        """Serve requests until stop() is called."""
        with self._state_lock:
            if self._closed:
                return 0
            self._serving = True
        self._server.serve_forever()
        return 0

    def stop(self) -> None:
        """Stop serving and release the socket; safe to call more than once."""
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
            serving = self._serving
        if serving:
            self._server.shutdown()
        self._server.server_close()


class StreamDeckClient:
    """A client of the RPC server."""

    def __init__(
        self,
        host: str = DEFAULT_CLIENT_HOST,
        port: int = DEFAULT_CLIENT_PORT,
    ) -> None:
        self._sock = socket.create_connection((host, port))
        self._packer = msgpack.Packer(use_bin_type=True)
        self._unpacker = msgpack.Unpacker(raw=False)
        self._lock = threading.Lock()
        self._ids = itertools.count()

    def __enter__(self) -> "StreamDeckClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._sock.close()

    def call(self, method: str, *params: Any) -> Any:
        """Call a remote method and return its result; raise RpcError on failure."""
        with self._lock:
            msgid = next(self._ids) % (1 << 32)
            self._sock.sendall(self._packer.pack([_REQUEST, msgid, method, list(params)]))
            while True:
                try:
                    message = next(self._unpacker)
                except StopIteration:
                    chunk = self._sock.recv(_RECV_SIZE)
                    if not chunk:
                        raise RpcError("connection closed by server") from None
                    self._unpacker.feed(chunk)
                    continue
                if (
                    isinstance(message, (list, tuple))
                    and len(message) == 4
                    and message[0] == _RESPONSE
                    and message[1] == msgid
                ):
                    _, _, error, result = message
                    if error is not None:
                        raise RpcError(str(error))
                    return result

    def components_list(self) -> dict[str, list[str]]:
        return dict(self.call("getComponentsList"))

    def devices_list(self) -> list[str]:
        return list(self.call("getDevicesList"))

    def device_current_profile(self, device_id: str) -> str:
        return self.call("getDeviceCurrentProfile", device_id)

    def device_profiles(self, device_id: str) -> list[str]:
        return list(self.call("getDeviceProfiles", device_id))

    def device_current_page(self, device_id: str) -> str:
        return self.call("getDeviceCurrentPage", device_id)

    def device_pages(self, device_id: str) -> list[str]:
        return list(self.call("getDevicePages", device_id))

    def set_device_brightness(self, device_id: str, brightness: int) -> None:
        self.call("setDeviceBrightness", device_id, brightness)

    def set_device_button_image(self, device_id: str, button: int, image: bytes) -> None:
        self.call("setDeviceButtonImage", device_id, button, bytes(image))

    def set_device_button_label(self, device_id: str, button: int, label: str) -> None:
        self.call("setDeviceButtonLabel", device_id, button, label)

    def set_device_button_component(
        self, device_id: str, button: int, module: str, component: str
    ) -> None:
        self.call("setDeviceButtonComponent", device_id, button, module, component)