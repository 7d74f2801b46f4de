"""
Receipt Image Preparation

Normalizes an uploaded receipt photo before it is sent to the AI service:
1. Rejects files that are not images
2. Applies EXIF orientation (phone photos are often rotated)
3. Downscales very large photos
4. Re-encodes as PNG

We check the basics with PIL locally rather than paying for a remote
call on a file that can never be read.
"""

from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from confia.config import get_settings


MAX_DIMENSION = 2048
OUTPUT_MIME_TYPE = "image/png"


class ReceiptImageError(Exception):
    """The uploaded file cannot be used as a receipt image."""
    pass


def prepare_receipt_image(
    image_bytes: bytes,
    max_size_bytes: int = 0,
) -> tuple[bytes, str]:
    """
    Validate and normalize a receipt photo.

    Args:
        image_bytes: Raw uploaded file
        max_size_bytes: Upload limit; 0 reads it from settings

    Returns:
        (png_bytes, mime_type)

    Raises:
        ReceiptImageError: If the file is empty, too large or not an image
    """
    if not image_bytes:
        raise ReceiptImageError("Empty file")

    limit = max_size_bytes or get_settings().app.max_upload_size_bytes
    if len(image_bytes) > limit:
        raise ReceiptImageError(
            f"File is {len(image_bytes)} bytes; the limit is {limit} bytes"
        )

    try:
        img = Image.open(BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ReceiptImageError(f"Not a readable image: {e}")

    img = ImageOps.exif_transpose(img)

    if max(img.size) > MAX_DIMENSION:
        img.thumbnail((MAX_DIMENSION, MAX_DIMENSION))

    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    output = BytesIO()
    img.save(output, format="PNG")
    return output.getvalue(), OUTPUT_MIME_TYPE
