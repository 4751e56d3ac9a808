"""
Transport image handling for image edit requests.

Decodes data URIs / base64 payloads into Pillow images, checks them against
the backend limits, and re-encodes them as the RGB PNG base64 strings the
generation backend accepts.
"""

import base64
import binascii
from dataclasses import dataclass
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from core.errors import ValidationError

SUPPORTED_FORMATS = {"PNG", "JPEG"}


@dataclass
class DecodedImage:
    image: Image.Image
    format: str
    byte_size: int

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self):
        return self.image.size


def is_data_url(data: str) -> bool:
    return data.startswith("data:")


def strip_data_url_header(data: str) -> str:
    """Return the base64 part of a data URI (e.g. "data:image/png;base64,iVBOR...")."""
    if not is_data_url(data):
        return data
    header, _, payload = data.partition(",")
    if ";base64" not in header:
        raise ValueError("data URI is not base64 encoded")
    return payload


def decode_base64_image(data: str) -> bytes:
    payload = "".join(strip_data_url_header(data.strip()).split())
    # Browsers occasionally drop the trailing padding
    payload += "=" * (-len(payload) % 4)
    return base64.b64decode(payload, validate=True)


def decode_image(data: Optional[str], *, label: str, error_code: str) -> DecodedImage:
    """
    Decode a transport-encoded image.

    Args:
        data: Data URI or bare base64 string
        label: Human name used in error messages ("base image", "mask")
        error_code: Error code raised when the payload is not a usable image

    Returns:
        The decoded image with its source format and byte size

    Raises:
        ValidationError: If the payload is empty, not base64, or not a supported raster format
    """
    if not data or not data.strip():
        raise ValidationError(error_code, f"The {label} is missing")

    try:
        img_bytes = decode_base64_image(data)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(error_code, f"The {label} is not valid base64 data") from e

    if not img_bytes:
        raise ValidationError(error_code, f"The {label} is empty")

    try:
        img = Image.open(BytesIO(img_bytes))
        img.load()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        raise ValidationError(error_code, f"The {label} could not be decoded as an image") from e

    if img.format not in SUPPORTED_FORMATS:
        raise ValidationError(
            error_code,
            f"The {label} must be PNG or JPEG, got {img.format or 'unknown format'}"
        )

    return DecodedImage(image=img, format=img.format, byte_size=len(img_bytes))


def check_dimensions(decoded: DecodedImage, *, min_width: int, min_height: int,
                     max_width: int, max_height: int) -> None:
    if decoded.width > max_width or decoded.height > max_height:
        raise ValidationError(
            "IMAGE_DIMENSIONS",
            f"The base image is {decoded.width}x{decoded.height}; the maximum is {max_width}x{max_height}"
        )
    if decoded.width < min_width or decoded.height < min_height:
        raise ValidationError(
            "IMAGE_DIMENSIONS",
            f"The base image is {decoded.width}x{decoded.height}; the minimum is {min_width}x{min_height}"
        )


def mask_from_alpha(img: Image.Image) -> Optional[Image.Image]:
    """
    Build an outpainting mask from transparency.

    Opaque pixels become black (kept), transparent pixels white (generated).
    Returns None when the image has no transparent pixels.
    """
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        alpha = img.convert("RGBA").getchannel("A")
    else:
        return None

    if alpha.getextrema()[0] == 255:
        return None

    mask = alpha.point(lambda a: 0 if a == 255 else 255)
    return mask.convert("RGB")


def encode_png_base64(img: Image.Image) -> str:
    """Encode as an RGB PNG, the layout the generation backend accepts."""
    if img.mode != "RGB":
        img = img.convert("RGB")
    output_buffer = BytesIO()
    img.save(output_buffer, format="PNG")
    return base64.b64encode(output_buffer.getvalue()).decode("ascii")


def decoded_size(b64_image: str) -> int:
    """Size in bytes of a generated image returned as base64."""
    try:
        return len(base64.b64decode(b64_image))
    except (binascii.Error, ValueError):
        return 0
