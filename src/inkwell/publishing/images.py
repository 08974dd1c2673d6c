"""Re-encoding of uploaded images before they are committed."""

import base64
import binascii
import io

from PIL import Image, UnidentifiedImageError

WEBP_EXTENSION = "webp"
WEBP_QUALITY = 80


class ImageProcessingError(ValueError):
    """Uploaded image data could not be decoded or re-encoded."""


def compress_to_webp(data: str, quality: int = WEBP_QUALITY) -> str:
    """Re-encode base64 image data as WebP and return it base64-encoded.

    Raises:
        ImageProcessingError: If the data is not base64 or not an image Pillow reads
    """
    try:
        raw = base64.b64decode(data, validate=True)
    except binascii.Error as e:
        raise ImageProcessingError("Image data is not valid base64") from e

    buffer = io.BytesIO()
    try:
        with Image.open(io.BytesIO(raw)) as image:
            image.load()
            # WebP stores RGB or RGBA only
            if image.mode not in ("RGB", "RGBA"):
                image = image.convert("RGBA" if image.has_transparency_data else "RGB")
            image.save(buffer, format="WEBP", quality=quality)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ImageProcessingError(f"Could not process the uploaded image: {e}") from e

    return base64.b64encode(buffer.getvalue()).decode("ascii")
