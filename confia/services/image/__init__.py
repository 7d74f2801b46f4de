"""Image preparation services."""

from confia.services.image.receipt_image import (
    ReceiptImageError,
    prepare_receipt_image,
)

__all__ = [
    "ReceiptImageError",
    "prepare_receipt_image",
]
