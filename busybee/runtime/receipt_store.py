"""Receipt photo storage, one JPEG per expense id.

Directory structure:
    receipts/
    └── <expense-id>.jpg
"""

from __future__ import annotations

import io
import os
import shutil
import tempfile
import uuid
from pathlib import Path

from busybee.domain.errors import (
    ImageTooLarge,
    InsufficientStorage,
    InvalidImage,
    ReceiptNotFound,
    ReceiptStoreError,
)
from busybee.runtime.logging import get_logger
from busybee.runtime.paths import get_paths

logger = get_logger(__name__)

MAX_IMAGE_SIZE_BYTES = 10 * 1024 * 1024  # 10MB
MIN_FREE_STORAGE_BYTES = 50 * 1024 * 1024  # 50MB
INITIAL_JPEG_QUALITY = 90
MIN_JPEG_QUALITY = 10
QUALITY_STEP = 10


def compress_receipt_image(image_bytes: bytes, max_bytes: int = MAX_IMAGE_SIZE_BYTES) -> bytes:
    """
    Re-encode an image as JPEG small enough to store.

    Applies EXIF orientation, converts to RGB, then lowers JPEG quality from
    90 in steps of 10 until the result fits ``max_bytes``.

    Args:
        image_bytes: Image data in any format Pillow can read
        max_bytes: Size limit for the stored JPEG

    Returns:
        JPEG bytes no larger than max_bytes

    Raises:
        InvalidImage: If the bytes are not a readable image
        ImageTooLarge: If even the lowest quality exceeds max_bytes
    """
    from PIL import Image, ImageOps, UnidentifiedImageError

    try:
        img = Image.open(io.BytesIO(image_bytes))
        img = ImageOps.exif_transpose(img)
        img = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidImage(f"Unreadable receipt image: {exc}") from exc

    quality = INITIAL_JPEG_QUALITY
    while True:
        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", quality=quality)
        data = buffer.getvalue()
        if len(data) <= max_bytes:
            return data
        if quality - QUALITY_STEP < MIN_JPEG_QUALITY:
            raise ImageTooLarge(f"Receipt image is {len(data)} bytes at quality {quality}; limit is {max_bytes}")
        quality -= QUALITY_STEP
        logger.debug("Receipt image too large (%d bytes), retrying at quality %d", len(data), quality)


class ReceiptFileStore:
    """Receipt images on disk keyed by expense id."""

    def __init__(
        self,
        directory: Path | None = None,
        max_image_bytes: int = MAX_IMAGE_SIZE_BYTES,
        min_free_bytes: int = MIN_FREE_STORAGE_BYTES,
    ) -> None:
        self.directory = directory or get_paths().receipts
        self.max_image_bytes = max_image_bytes
        self.min_free_bytes = min_free_bytes

    def path_for(self, expense_id: uuid.UUID) -> Path:
        return self.directory / f"{expense_id}.jpg"

    def _ensure_directory(self) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ReceiptStoreError(f"Cannot access receipts directory {self.directory}: {exc}") from exc

    def _check_free_space(self) -> None:
        try:
            free = shutil.disk_usage(self.directory).free
        except OSError:
            return
        if free < self.min_free_bytes:
            raise InsufficientStorage(f"Only {free} bytes free in {self.directory}")

    def save(self, image_bytes: bytes, expense_id: uuid.UUID) -> Path:
        """Compress and store a receipt image, replacing any existing one."""
        self._ensure_directory()
        self._check_free_space()

        data = compress_receipt_image(image_bytes, self.max_image_bytes)
        target = self.path_for(expense_id)
        tmp_name: str | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".receipt.", suffix=".tmp")
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, target)
            tmp_name = None
        except OSError as exc:
            raise ReceiptStoreError(f"Failed to write receipt {target}: {exc}") from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.info("Saved receipt for expense %s (%d bytes)", expense_id, len(data))
        return target

    def load(self, expense_id: uuid.UUID) -> bytes:
        path = self.path_for(expense_id)
        if not path.exists():
            raise ReceiptNotFound(f"No receipt for expense {expense_id}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise ReceiptStoreError(f"Failed to read receipt {path}: {exc}") from exc

    def delete(self, expense_id: uuid.UUID) -> bool:
        """
        Delete a receipt image.

        Returns:
            True if deleted, False if there was none
        """
        path = self.path_for(expense_id)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as exc:
            logger.warning("Failed to delete receipt %s: %s", path, exc)
            return False
        logger.info("Deleted receipt for expense %s", expense_id)
        return True

    def exists(self, expense_id: uuid.UUID) -> bool:
        return self.path_for(expense_id).exists()
