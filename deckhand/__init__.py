"""Stream Deck control server: deck drivers, profiles, button components and MessagePack-RPC."""

__version__ = "0.1.0"