"""
Folio Backend — Upload Validation Unit Tests
==============================================

What:  Extension, size and content checks on album image payloads.
Why:   Validation runs before any upload; anything it lets through ends up
       in object storage.

Test Strategy:
    ✅ Allowed extensions (.png, .jpg, .jpeg, .gif, .webp), case-insensitive
    ✅ Rejected extensions (.pdf, .exe, none)
    ✅ Empty and oversized files
    ✅ Bytes that are not an image, even with an image extension
    ✅ Dimensions captured from the decoded image
"""

import io

import pytest
from PIL import Image as PILImage

from folio.exceptions import ValidationError
from folio.services.upload_service import ImagePayload, UploadValidator


class TestUploadValidation:
    def setup_method(self):
        self.validator = UploadValidator(max_file_size=64 * 1024)

    # ── Extension Validation ──────────────────────────────────────────────

    @pytest.mark.parametrize("filename", ["a.png", "a.jpg", "a.jpeg", "a.gif", "a.webp", "A.PNG", "b.JpEg"])
    def test_allowed_extensions(self, filename):
        assert self.validator.validate_extension(filename).startswith(".")

    @pytest.mark.parametrize("filename", ["doc.pdf", "malware.exe", "noextension", "archive.png.zip"])
    def test_rejected_extensions(self, filename):
        with pytest.raises(ValidationError, match="not supported"):
            self.validator.validate_extension(filename)

    # ── Size Validation ───────────────────────────────────────────────────

    def test_empty_file_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            self.validator.validate_size("a.png", 0)

    def test_at_limit_accepted(self):
        self.validator.validate_size("a.png", 64 * 1024)

    def test_over_limit_rejected(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.validator.validate_size("a.png", 64 * 1024 + 1)

    # ── Content Validation ────────────────────────────────────────────────

    def test_png_dimensions(self, make_png):
        result = self.validator.validate(ImagePayload(filename="photo.png", content=make_png(5, 7)))
        assert (result.width, result.height) == (5, 7)
        assert result.content_type == "image/png"
        assert result.extension == ".png"
        assert result.size > 0

    def test_jpeg_content_type(self):
        buffer = io.BytesIO()
        PILImage.new("RGB", (2, 2), "blue").save(buffer, format="JPEG")
        result = self.validator.validate(ImagePayload(filename="photo.jpg", content=buffer.getvalue()))
        assert result.content_type == "image/jpeg"

    def test_text_renamed_to_png_rejected(self):
        with pytest.raises(ValidationError, match="not a valid image"):
            self.validator.validate(ImagePayload(filename="fake.png", content=b"definitely not an image"))

    def test_first_invalid_payload_aborts_batch(self, make_png):
        payloads = [
            ImagePayload(filename="ok.png", content=make_png()),
            ImagePayload(filename="bad.txt", content=b"text"),
        ]
        with pytest.raises(ValidationError):
            self.validator.validate_all(payloads)

    def test_storage_path_is_scoped_to_album(self, make_png):
        result = self.validator.validate(ImagePayload(filename="My Photo.PNG", content=make_png()))
        path = result.storage_path("album-1")
        assert path.startswith("album-1/")
        assert path.endswith(".png")
        assert "My Photo" not in path

    def test_decompression_bomb_rejected(self, make_png, monkeypatch):
        # 100 pixels against a limit of 10: Pillow refuses to open it at all
        monkeypatch.setattr(PILImage, "MAX_IMAGE_PIXELS", 10)
        with pytest.raises(ValidationError, match="too many pixels"):
            self.validator.validate(ImagePayload(filename="huge.png", content=make_png(10, 10)))
