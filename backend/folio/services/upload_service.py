"""
Folio Backend — Image Upload Validation
=========================================

What:  Validates album image payloads before anything is written to storage.
Why:   Album create/update upload N files. Rejecting a bad file after some of
       its siblings were already uploaded would force a compensating delete,
       so every payload of a request is checked up front.
How:   Extension allow-list, size limit, then Pillow decodes the bytes to make
       sure they really are an image and to read its dimensions.
Who:   Called by AlbumService before the first upload of a request.

Validation order (cheapest first):
    1. Extension check: no bytes read
    2. Size check:      len() only
    3. Pillow decode:   parses the header, verifies the stream

Why Pillow rather than an extension check alone:
    Extensions are trivially spoofed. Pillow reads the real format from the
    file header, and we need width/height for the Image record anyway.
"""

import io
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from folio.config import settings
from folio.exceptions import ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}

# Pillow format name → content type sent to object storage
FORMAT_CONTENT_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}


@dataclass
class ImagePayload:
    """One file received with an album create/update request."""

    filename: str
    content: bytes
    alt: Optional[str] = None
    caption: Optional[str] = None


@dataclass
class ValidatedImage:
    """A payload that passed validation, ready to be uploaded."""

    payload: ImagePayload
    extension: str
    content_type: str
    width: int
    height: int

    @property
    def size(self) -> int:
        return len(self.payload.content)

    def storage_path(self, album_id: str) -> str:
        """
        Object key for this image: `<album_id>/<uuid><ext>`.

        No user input ends up in the key, so there is nothing to traverse with.
        """
        return f"{album_id}/{uuid.uuid4()}{self.extension}"


class UploadValidator:
    """
    Checks image payloads against the upload rules.

    Stateless apart from the size limit, which tests override.
    """

    def __init__(self, max_file_size: Optional[int] = None):
        self.max_file_size = max_file_size or settings.max_file_size

    def validate_extension(self, filename: str) -> str:
        """
        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if extension is not allowed.
        """
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="images",
                context={"filename": filename, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, filename: str, actual_size: int) -> None:
        """Rejects empty files and files above the configured maximum."""
        if actual_size == 0:
            raise ValidationError(
                message=f"File '{filename}' is empty.",
                field="images",
                context={"filename": filename},
            )

        if actual_size > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=(
                    f"File '{filename}' ({actual_size / (1024 * 1024):.1f}MB) "
                    f"exceeds maximum of {max_mb:.0f}MB."
                ),
                field="images",
                context={"filename": filename, "max_size": self.max_file_size, "actual_size": actual_size},
            )

    def inspect_image(self, filename: str, content: bytes):
        """
        Decode the bytes with Pillow.

        Returns:
            (content_type, width, height)

        Raises:
            ValidationError if the bytes are not a supported image.
        """
        try:
            with PILImage.open(io.BytesIO(content)) as img:
                image_format = img.format
                width, height = img.size
                img.verify()
        except PILImage.DecompressionBombError as e:
            logger.warning("Rejected upload '%s': %s", filename, e)
            raise ValidationError(
                message=f"File '{filename}' has too many pixels to be processed.",
                field="images",
                context={"filename": filename},
            ) from e
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            logger.info("Rejected upload '%s': not a decodable image (%s)", filename, e)
            raise ValidationError(
                message=f"File '{filename}' is not a valid image.",
                field="images",
                context={"filename": filename},
            ) from e

        content_type = FORMAT_CONTENT_TYPES.get(image_format or "")
        if content_type is None:
            raise ValidationError(
                message=f"Image format '{image_format}' is not supported.",
                field="images",
                context={"filename": filename, "format": image_format},
            )
        return content_type, width, height

    def validate(self, payload: ImagePayload) -> ValidatedImage:
        """Run every check on a single payload."""
        ext = self.validate_extension(payload.filename)
        self.validate_size(payload.filename, len(payload.content))
        content_type, width, height = self.inspect_image(payload.filename, payload.content)
        return ValidatedImage(
            payload=payload,
            extension=ext,
            content_type=content_type,
            width=width,
            height=height,
        )

    def validate_all(self, payloads: Sequence[ImagePayload]) -> List[ValidatedImage]:
        """Validate a whole request's payloads; the first failure aborts."""
        return [self.validate(payload) for payload in payloads]


upload_validator = UploadValidator()
