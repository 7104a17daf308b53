import json

from deckhand import config
from deckhand.config import (
    calculate_md5,
    create_default_configs,
    create_empty_profile,
    create_new_profile,
    deck_folder_path,
    deck_profiles,
    default_profile_name,
    load_deck_profile,
    save_button_image,
)

SERIAL = "TESTSERIAL0001"


def test_md5_of_empty_data():
    assert calculate_md5(b"") == "D41D8CD98F00B204E9800998ECF8427E"


def test_md5_is_upper_case_hex():
    digest = calculate_md5(b"some image bytes")
    assert len(digest) == 32
    assert digest == digest.upper()


def test_deck_folder_path_creates_only_top_folder(tmp_path):
    path = deck_folder_path(SERIAL, tmp_path)
    assert path == tmp_path / ".streamdeck" / SERIAL
    assert (tmp_path / ".streamdeck").is_dir()
    assert not path.exists()


def test_create_empty_profile_writes_default(tmp_path):
    target = tmp_path / "x.profile"
    create_empty_profile(target)
    data = json.loads(target.read_text())
    assert data == config.DEFAULT_PROFILE


def test_create_default_configs(tmp_path):
    create_default_configs(tmp_path)
    assert (tmp_path / "default.profile").is_file()
    assert (tmp_path / ".config").read_text() == "default"


def test_default_profile_name_without_folder(tmp_path):
    assert default_profile_name(SERIAL, tmp_path) == "default"


def test_default_profile_name_reads_config(tmp_path):
    folder = deck_folder_path(SERIAL, tmp_path)
    folder.mkdir()
    (folder / ".config").write_text("custom\n")
    assert default_profile_name(SERIAL, tmp_path) == "custom"


def test_load_deck_profile_creates_defaults(tmp_path):
    profile = load_deck_profile(SERIAL, "default", tmp_path)
    assert profile.name() == "default"
    assert profile.brightness() == 25
    assert profile.pages() == ["Page 1"]
    assert profile.current_page_name() == "Page 1"
    assert (deck_folder_path(SERIAL, tmp_path) / ".config").is_file()


def test_create_new_profile_and_list(tmp_path):
    profile = create_new_profile(SERIAL, "other", tmp_path)
    assert profile.name() == "other"
    assert deck_profiles(SERIAL, tmp_path) == ["default", "other"]


def test_create_new_profile_overwrites(tmp_path):
    profile = create_new_profile(SERIAL, "other", tmp_path)
    profile.set_brightness(70)
    again = create_new_profile(SERIAL, "other", tmp_path)
    assert again.brightness() == 25


def test_deck_profiles_ignores_other_files(tmp_path):
    folder = deck_folder_path(SERIAL, tmp_path)
    deck_profiles(SERIAL, tmp_path)
    (folder / "notes.txt").write_text("x")
    assert deck_profiles(SERIAL, tmp_path) == ["default"]


def test_save_button_image_is_content_addressed(tmp_path):
    image = b"\xff\xd8 image payload"
    path = save_button_image(SERIAL, image, tmp_path)
    assert path.name == calculate_md5(image)
    assert path.parent == tmp_path / ".streamdeck" / "images"
    assert path.read_bytes() == image
    assert save_button_image(SERIAL, image, tmp_path) == path