"""
StayHub Backend: Profile Image Upload Tests
============================================

What:  Tests for FileService validation and the storage upload call.
How:   The storage client is mocked; no bucket is touched.

Test Strategy:
    ✅ Allowed extensions (.jpg, .jpeg, .png, .gif), case-insensitive
    ✅ Rejected extensions and content types
    ✅ Size limits (empty, boundary, over the limit)
    ✅ Upload goes to the configured bucket and returns the public URL
    ✅ Storage failures surface as FileStorageError
    ✅ Object names are unique per upload; orphaned objects can be removed
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from stayhub.config import settings
from stayhub.exceptions import FileStorageError, ValidationError
from stayhub.services.file_service import FileService


class TestFileValidation:

    def setup_method(self):
        self.service = FileService()

    # ── Extension Validation ──────────────────────────────────────────────

    @pytest.mark.parametrize("filename", ["me.jpg", "me.jpeg", "me.png", "me.gif", "ME.JPG"])
    def test_allowed_extensions(self, filename):
        assert self.service.validate_extension(filename) == filename[filename.rfind("."):].lower()

    @pytest.mark.parametrize("filename", ["notes.pdf", "script.exe", "image.bmp", "noextension", None])
    def test_rejected_extensions(self, filename):
        with pytest.raises(ValidationError):
            self.service.validate_extension(filename)

    # ── Content Type Validation ───────────────────────────────────────────

    def test_content_type_parameters_ignored(self):
        assert self.service.validate_content_type("image/png; charset=binary") == "image/png"

    @pytest.mark.parametrize("content_type", ["application/pdf", "text/html", None])
    def test_rejected_content_types(self, content_type):
        with pytest.raises(ValidationError):
            self.service.validate_content_type(content_type)

    # ── Size Validation ───────────────────────────────────────────────────

    def test_empty_file_rejected(self):
        with pytest.raises(ValidationError, match="No se proporcionó ninguna imagen"):
            self.service.validate_size(0)

    def test_exact_limit_accepted(self):
        self.service.validate_size(settings.max_image_size)

    def test_over_limit_rejected(self):
        with pytest.raises(ValidationError, match="exceeds"):
            self.service.validate_size(settings.max_image_size + 1)

    def test_object_name_has_no_client_text(self):
        name = self.service.object_name("user-1", ".png")
        assert name.startswith("user-1-")
        assert name.endswith(".png")

    def test_object_names_never_repeat(self):
        names = {self.service.object_name("user-1", ".png") for _ in range(100)}
        assert len(names) == 100


class TestUpload:

    def setup_method(self):
        self.service = FileService()

    def _storage_client(self, bucket):
        client = MagicMock()
        client.storage.from_.return_value = bucket
        return client

    @pytest.mark.asyncio
    async def test_upload_returns_public_url(self):
        bucket = MagicMock()
        bucket.upload = AsyncMock()
        bucket.get_public_url = AsyncMock(return_value="https://cdn.example.com/user-1.png")
        client = self._storage_client(bucket)

        with patch("stayhub.services.file_service.identity_service") as mock_identity:
            mock_identity.admin_client = AsyncMock(return_value=client)
            stored = await self.service.upload_profile_image(
                user_id="user-1", filename="me.png", content_type="image/png", content=b"\x89PNG"
            )

        assert stored.url == "https://cdn.example.com/user-1.png"
        assert bucket.upload.call_args.kwargs["path"] == stored.name
        client.storage.from_.assert_called_once_with(settings.profile_image_bucket)
        kwargs = bucket.upload.call_args.kwargs
        assert kwargs["file"] == b"\x89PNG"
        assert kwargs["file_options"] == {"content-type": "image/png"}

    @pytest.mark.asyncio
    async def test_storage_failure_is_wrapped(self):
        bucket = MagicMock()
        bucket.upload = AsyncMock(side_effect=RuntimeError("bucket not found"))

        with patch("stayhub.services.file_service.identity_service") as mock_identity:
            mock_identity.admin_client = AsyncMock(return_value=self._storage_client(bucket))
            with pytest.raises(FileStorageError):
                await self.service.upload_profile_image(
                    user_id="user-1", filename="me.png", content_type="image/png", content=b"\x89PNG"
                )

    @pytest.mark.asyncio
    async def test_cleanup_removes_object(self):
        bucket = MagicMock()
        bucket.remove = AsyncMock()

        with patch("stayhub.services.file_service.identity_service") as mock_identity:
            mock_identity.admin_client = AsyncMock(return_value=self._storage_client(bucket))
            await self.service.cleanup_object("user-1-abc.png")

        bucket.remove.assert_awaited_once_with(["user-1-abc.png"])

    @pytest.mark.asyncio
    async def test_cleanup_failure_is_not_raised(self):
        bucket = MagicMock()
        bucket.remove = AsyncMock(side_effect=RuntimeError("storage unavailable"))

        with patch("stayhub.services.file_service.identity_service") as mock_identity:
            mock_identity.admin_client = AsyncMock(return_value=self._storage_client(bucket))
            await self.service.cleanup_object("user-1-abc.png")
