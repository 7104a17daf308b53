"""The server process: module registry, deck controller, RPC server and the tick loop."""

from __future__ import annotations

import argparse
import logging
import os
import threading
from pathlib import Path
from typing import Iterable, Optional, Sequence

from deckhand.config import FOLDER_MODULES, FOLDER_STREAMDECK, home_directory
from deckhand.controller import DeviceController
from deckhand.devices import Transport, create_debug_transport
from deckhand.module_api import Module
from deckhand.module_loader import ModuleLoader
from deckhand.rpc import DEFAULT_SERVER_PORT, RpcServer

_log = logging.getLogger(__name__)

_TICK_INTERVAL = 0.1
_JOIN_TIMEOUT = 5.0


class Engine:
    """Wires the parts of the server together and runs them."""

    def __init__(
        self,
        modules: Iterable[Module] = (),
        transport: Optional[Transport] = None,
        home: Optional[str | os.PathLike[str]] = None,
        port: int = DEFAULT_SERVER_PORT,
    ) -> None:
        root = Path(home) if home is not None else home_directory()
        self.modules_path = root / FOLDER_STREAMDECK / FOLDER_MODULES
        self.modules_path.mkdir(parents=True, exist_ok=True)
        self.module_loader = ModuleLoader(modules)
        self.controller = DeviceController(
            self.module_loader,
            transport if transport is not None else create_debug_transport(),
            home,
        )
        self.rpc_server = RpcServer(port, self.controller, self.module_loader)
        self._stop = threading.Event()

    def start(self) -> int:
        """Serve RPC, look for decks and tick them every 100 ms until stop() is called."""
        self._stop.clear()
        rpc_thread = threading.Thread(target=self.rpc_server.start, name="rpc", daemon=True)
        inspector = threading.Thread(
            target=self.controller.device_inspector, name="device-inspector", daemon=True
        )
        rpc_thread.start()
        inspector.start()
        try:
            while not self._stop.is_set():
                self.controller.tick()
                self._stop.wait(_TICK_INTERVAL)
        finally:
            self.rpc_server.stop()
            rpc_thread.join(_JOIN_TIMEOUT)
            inspector.join(_JOIN_TIMEOUT)
        return 0

    def stop(self) -> None:
        """Ask the running loop to finish."""
        self._stop.set()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="deckhand", description="Run the deck server.")
    parser.add_argument("--port", type=int, default=DEFAULT_SERVER_PORT, help="RPC port")
    parser.add_argument("--home", default=None, help="directory holding the configuration")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    engine = Engine(home=args.home, port=args.port)
    try:
        return engine.start()
    except KeyboardInterrupt:
        engine.stop()
        return 0