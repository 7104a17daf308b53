import io

import pytest
from PIL import Image

from deckhand.images import (
    TargetImageParameters,
    apply_label_on_image,
    create_empty_image,
    load_raw_image,
    prepare_image_for_deck,
)

JPEG_MAGIC = b"\xff\xd8"


def decode(data):
    return Image.open(io.BytesIO(data)).convert("RGB")


def split_image(width=40, height=40):
    """Left half red, right half blue."""
    image = Image.new("RGB", (width, height), (0, 0, 255))
    image.paste((255, 0, 0), (0, 0, width // 2, height))
    return image


def encoded(image, fmt="PNG"):
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def test_create_empty_image_has_target_size_and_is_black():
    params = TargetImageParameters(72, 72, True, True)
    data = create_empty_image(params)
    assert data.startswith(JPEG_MAGIC)
    image = decode(data)
    assert image.size == (72, 72)
    assert max(max(px) for px in image.getdata()) < 10


def test_load_raw_image_encodes_jpeg(tmp_path):
    path = tmp_path / "key.png"
    split_image().save(path)
    data = load_raw_image(str(path))
    assert data.startswith(JPEG_MAGIC)
    assert decode(data).size == (40, 40)


def test_load_raw_image_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_raw_image(tmp_path / "absent.png")


def test_prepare_resizes_bytes():
    params = TargetImageParameters(72, 72, False, False)
    out = prepare_image_for_deck(encoded(split_image()), params)
    image = decode(out)
    assert image.size == (72, 72)
    left = image.getpixel((5, 36))
    assert left[0] > left[2]


def test_prepare_flips_horizontally():
    params = TargetImageParameters(40, 40, False, True)
    image = decode(prepare_image_for_deck(encoded(split_image()), params))
    left = image.getpixel((5, 20))
    right = image.getpixel((35, 20))
    assert left[2] > left[0]
    assert right[0] > right[2]


def test_prepare_flips_vertically():
    source = Image.new("RGB", (40, 40), (0, 0, 255))
    source.paste((255, 0, 0), (0, 0, 40, 20))
    params = TargetImageParameters(40, 40, True, False)
    image = decode(prepare_image_for_deck(source, params))
    top = image.getpixel((20, 5))
    bottom = image.getpixel((20, 35))
    assert top[2] > top[0]
    assert bottom[0] > bottom[2]


def test_prepare_accepts_path(tmp_path):
    path = tmp_path / "key.png"
    split_image(10, 20).save(path)
    params = TargetImageParameters(30, 15, False, False)
    assert decode(prepare_image_for_deck(path, params)).size == (30, 15)


def test_prepare_rejects_garbage():
    with pytest.raises(ValueError):
        prepare_image_for_deck(b"not an image", TargetImageParameters(72, 72, False, False))


def test_apply_label_keeps_size_and_adds_light_pixels():
    params = TargetImageParameters(72, 72, False, False)
    blank = create_empty_image(params)
    labelled = apply_label_on_image(blank, "Mute", 12)
    image = decode(labelled)
    assert image.size == (72, 72)
    assert max(max(px) for px in image.getdata()) > 150


def test_apply_label_default_font_size():
    blank = create_empty_image(TargetImageParameters(50, 30, False, False))
    assert decode(apply_label_on_image(blank, "A")).size == (50, 30)