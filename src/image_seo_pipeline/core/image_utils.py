"""Image codec utilities for the image SEO pipeline."""

import io
from typing import Any, Dict

from PIL import Image

from .models import EncodingProfile, ImageFormat

# Modes JPEG can store directly; everything else is flattened to RGB first.
JPEG_SAFE_MODES = ("RGB", "L", "CMYK")


def load_image(image_bytes: bytes) -> "Image.Image":
    """
    Decode image bytes into a fully loaded PIL Image.

    Raises:
        PIL.UnidentifiedImageError: If the bytes are not a recognizable image
    """
    image = Image.open(io.BytesIO(image_bytes))
    image.load()
    return image


def prepare_for_format(img: "Image.Image", image_format: ImageFormat) -> "Image.Image":
    """
    Convert an image into a mode the target format can store.

    Args:
        img: PIL Image to convert
        image_format: Target format

    Returns:
        The same image, or a converted copy
    """
    if image_format is ImageFormat.JPEG and img.mode not in JPEG_SAFE_MODES:
        if img.mode in ("RGBA", "LA") or (
            img.mode == "P" and "transparency" in img.info
        ):
            rgba = img.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.getchannel("A"))
            return background
        return img.convert("RGB")
    return img


def save_options_for(img: "Image.Image", profile: EncodingProfile) -> Dict[str, Any]:
    """Profile parameters plus metadata worth carrying into the output."""
    options = dict(profile.save_options)
    icc_profile = img.info.get("icc_profile")
    if icc_profile:
        options["icc_profile"] = icc_profile
    return options


class PillowCodec:
    """Codec capability backed by Pillow."""

    def encode(self, image_bytes: bytes, profile: EncodingProfile) -> bytes:
        """Re-encode image bytes under the given profile."""
        image = load_image(image_bytes)
        prepared = prepare_for_format(image, profile.image_format)

        output_stream = io.BytesIO()
        prepared.save(
            output_stream,
            format=profile.pil_format,
            **save_options_for(image, profile),
        )
        return output_stream.getvalue()


def detect_mime_type(image_bytes: bytes) -> str:
    """
    Sniff the MIME type of image bytes.

    Returns "image/png" for PNG data and "image/jpeg" for everything else,
    including bytes Pillow cannot identify.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            image_format = (image.format or "").upper()
    except Exception:
        return "image/jpeg"
    return "image/png" if image_format == "PNG" else "image/jpeg"
