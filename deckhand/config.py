"""Locations and helpers for per-deck configuration stored under the home directory."""

from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from typing import Optional

from deckhand.profile import Profile

FOLDER_STREAMDECK = ".streamdeck"
FOLDER_MODULES = "modules"
FOLDER_IMAGES = "images"
FOLDER_PROFILES = "profiles"
FILENAME_CONFIG = ".config"
FILENAME_DEFAULT_PROFILE_NAME = "default"
EXTENSION_PROFILE = ".profile"

DEFAULT_PROFILE = {
    "brightness": 25,
    "page": "Page 1",
    "pages": [{"name": "Page 1", "keys": []}],
}

PathLike = "str | os.PathLike[str]"


def home_directory() -> Path:
    """Return the current user's home directory."""
    return Path.home()


def _root(home: Optional[str | os.PathLike[str]]) -> Path:
    return Path(home) if home is not None else home_directory()


def deck_folder_path(deck_serial: str, home: Optional[str | os.PathLike[str]] = None) -> Path:
    """Return the folder holding a deck's profiles, creating the top-level folder if needed."""
    configs_path = _root(home) / FOLDER_STREAMDECK
    configs_path.mkdir(parents=True, exist_ok=True)
    return configs_path / deck_serial


def create_empty_profile(path: str | os.PathLike[str]) -> None:
    """Write a profile with one empty page to ``path``, replacing any existing file."""
    Path(path).write_text(json.dumps(DEFAULT_PROFILE), encoding="utf-8")


def create_default_configs(path: str | os.PathLike[str]) -> None:
    """Create the default profile and the file naming it as the one to load."""
    folder = Path(path)
    create_empty_profile(folder / (FILENAME_DEFAULT_PROFILE_NAME + EXTENSION_PROFILE))
    (folder / FILENAME_CONFIG).write_text(FILENAME_DEFAULT_PROFILE_NAME, encoding="utf-8")


def _ensure_deck_folder(deck_serial: str, home: Optional[str | os.PathLike[str]]) -> Path:
    folder = deck_folder_path(deck_serial, home)
    if not folder.exists():
        folder.mkdir()
        create_default_configs(folder)
    return folder


def default_profile_name(deck_serial: str, home: Optional[str | os.PathLike[str]] = None) -> str:
    """Return the name of the profile a deck starts with."""
    config_path = deck_folder_path(deck_serial, home) / FILENAME_CONFIG
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError:
        return FILENAME_DEFAULT_PROFILE_NAME
    words = text.split()
    return words[0] if words else ""


def load_deck_profile(
    deck_serial: str, profile_name: str, home: Optional[str | os.PathLike[str]] = None
) -> Profile:
    """Load a named profile of a deck, creating the deck's default configuration first if needed."""
    folder = _ensure_deck_folder(deck_serial, home)
    return Profile(folder / (profile_name + EXTENSION_PROFILE))


def create_new_profile(
    deck_serial: str, profile_name: str, home: Optional[str | os.PathLike[str]] = None
) -> Profile:
    """Create (or overwrite) an empty profile for a deck and return it."""
    folder = _ensure_deck_folder(deck_serial, home)
    path = folder / (profile_name + EXTENSION_PROFILE)
    create_empty_profile(path)
    return Profile(path)


def deck_profiles(deck_serial: str, home: Optional[str | os.PathLike[str]] = None) -> list[str]:
    """Return the names of all profiles of a deck."""
    folder = _ensure_deck_folder(deck_serial, home)
    return sorted(
        entry.stem
        for entry in folder.iterdir()
        if entry.is_file() and entry.suffix == EXTENSION_PROFILE
    )


def calculate_md5(data: bytes) -> str:
    """Return the MD5 digest of ``data`` as upper-case hex."""
    return hashlib.md5(bytes(data)).hexdigest().upper()


def save_button_image(
    deck_serial: str, image: bytes, home: Optional[str | os.PathLike[str]] = None
) -> Path:
    """Store image data in the shared image cache, named by its digest, and return its path."""
    cache_dir = _root(home) / FOLDER_STREAMDECK / FOLDER_IMAGES
    cache_dir.mkdir(parents=True, exist_ok=True)
    path = cache_dir / calculate_md5(image)
    if not path.exists():
        path.write_bytes(bytes(image))
    return path