"""Discovery of attached decks through a transport."""

from __future__ import annotations

import logging

from deckhand import original_v2 as _original_v2  # noqa: F401  registers the driver
from deckhand.devices import ProductId, Transport, VendorId
from deckhand.streamdeck import StreamDeck, create_deck

_log = logging.getLogger(__name__)

_PRODUCTS = (
    ProductId.ORIGINAL,
    ProductId.ORIGINAL_V2,
    ProductId.MINI,
    ProductId.XL,
    ProductId.MK2,
    ProductId.PEDAL,
    ProductId.MINI_MK2,
    ProductId.XL_V2,
)


class DeviceManager:
    """Finds attached decks of every known model."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def enumerate(self) -> list[StreamDeck]:
        """Return a deck object for every attached device with a known driver."""
        decks: list[StreamDeck] = []
        for product in _PRODUCTS:
            for device in self._transport.enumerate(VendorId.ELGATO, product):
                _log.debug("found device of product %#06x", int(product))
                deck = create_deck(product, device)
                if deck is None:
                    _log.warning("no driver for product %#06x", int(product))
                    continue
                decks.append(deck)
        return decks