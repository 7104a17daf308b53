"""Image preparation for deck keys: decoding, resizing, flipping and labelling."""

from __future__ import annotations

import enum
import io
import os
from dataclasses import dataclass
from typing import Union

from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError


@dataclass(frozen=True)
class TargetImageParameters:
    """The size and orientation a deck expects for key images."""

    width: int = 0
    height: int = 0
    flip_vertically: bool = False
    flip_horizontally: bool = False


class ImageFormat(enum.Enum):
    JPEG = 0
    PNG = 1


ImageSource = Union[bytes, bytearray, str, "os.PathLike[str]", Image.Image]


def _encode_jpeg(image: Image.Image) -> bytes:
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG")
    return buffer.getvalue()


def _decode(data: bytes) -> Image.Image:
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.convert("RGB")
    except UnidentifiedImageError as exc:
        raise ValueError("cannot decode image data") from exc


def _read(filename: str | os.PathLike[str]) -> Image.Image:
    with Image.open(filename) as image:
        return image.convert("RGB")


def load_raw_image(filename: str | os.PathLike[str]) -> bytes:
    """Read an image file and return it encoded as JPEG."""
    return _encode_jpeg(_read(filename))


def prepare_image_for_deck(image: ImageSource, params: TargetImageParameters) -> bytes:
    """Resize and flip an image for a deck; accepts encoded bytes, a path or a PIL image."""
    if isinstance(image, (bytes, bytearray)):
        picture = _decode(bytes(image))
    elif isinstance(image, Image.Image):
        picture = image.convert("RGB")
    else:
        picture = _read(image)

    if picture.size != (params.width, params.height):
        picture = picture.resize((params.width, params.height))

    if params.flip_vertically:
        picture = ImageOps.flip(picture)
    if params.flip_horizontally:
        picture = ImageOps.mirror(picture)

    return _encode_jpeg(picture)


def _font(size: int) -> ImageFont.ImageFont:
    try:
        return ImageFont.load_default(size=size)
    except TypeError:
        return ImageFont.load_default()


def apply_label_on_image(data: bytes, label: str, font_size: int = 12) -> bytes:
    """Draw a white, black-outlined label centred on the image."""
    picture = _decode(data)
    draw = ImageDraw.Draw(picture)
    font = _font(font_size)
    left, top, right, bottom = draw.textbbox((0, 0), label, font=font, stroke_width=1)
    width, height = right - left, bottom - top
    position = (picture.width // 2 - width // 2 - left, picture.height // 2 - height // 2 - top)
    draw.text(
        position,
        label,
        font=font,
        fill=(255, 255, 255),
        stroke_width=1,
        stroke_fill=(0, 0, 0),
    )
    return _encode_jpeg(picture)


def create_empty_image(params: TargetImageParameters) -> bytes:
    """Return a black JPEG of the target size."""
    return _encode_jpeg(Image.new("L", (params.width, params.height), 0))