"""
StayHub Backend: Profile Image Upload Service
==============================================

What:  Validates uploaded profile images and stores them in the hosted
       object storage bucket.
Who:   Called by the user service for PUT /api/users/{id}/profile-image.

Validation order (cheapest first):
    1. Extension check:     .jpg/.jpeg/.png/.gif
    2. Declared type check: multipart Content-Type must be an allowed image type
    3. Size check:          max_image_size (5MB by default), empty files rejected

Object naming:
    {user_id}-{uuid4 hex}.{ext}
    The name carries no client-supplied text besides the validated extension,
    and a new upload never overwrites the previous object, so cached URLs of
    the old image keep working until clients refetch the profile.

Uploads go through the service-role client: the route has already checked
that the caller is the profile owner.
"""

import logging
import uuid
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

from stayhub.config import settings
from stayhub.exceptions import FileStorageError, StayHubError, ValidationError
from stayhub.services.identity_service import identity_service

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}


@dataclass
class StoredImage:
    name: str
    url: str


class FileService:

    def validate_extension(self, filename: Optional[str]) -> str:
        """Returns the normalized extension (lowercase, with dot)."""
        ext = PurePosixPath(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"Tipo de archivo no válido '{ext or filename}'. "
                    f"Solo se permiten imágenes: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="image",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_content_type(self, content_type: Optional[str]) -> str:
        mime = (content_type or "").split(";")[0].strip().lower()
        if mime not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message="Tipo de archivo no válido. Solo se permiten imágenes.",
                field="image",
                context={"content_type": mime, "allowed": sorted(ALLOWED_MIME_TYPES)},
            )
        return mime

    def validate_size(self, actual_size: int) -> None:
        max_mb = settings.max_image_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(message="No se proporcionó ninguna imagen", field="image")

        if actual_size > settings.max_image_size:
            raise ValidationError(
                message=(
                    f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds "
                    f"maximum of {max_mb:.0f}MB."
                ),
                field="image",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    @staticmethod
    def object_name(user_id: str, extension: str) -> str:
        return f"{user_id}-{uuid.uuid4().hex}{extension}"

    async def upload_profile_image(
        self,
        user_id: str,
        filename: Optional[str],
        content_type: Optional[str],
        content: bytes,
    ) -> StoredImage:
        """
        Validate and upload a profile image.

        Returns:
            The object name (for cleanup) and its public URL

        Raises:
            ValidationError: wrong type, empty, or too large
            FileStorageError: the storage backend rejected the upload
        """
        ext = self.validate_extension(filename)
        mime = self.validate_content_type(content_type)
        self.validate_size(len(content))

        name = self.object_name(user_id, ext)
        try:
            client = await identity_service.admin_client()
            bucket = client.storage.from_(settings.profile_image_bucket)
            await bucket.upload(path=name, file=content, file_options={"content-type": mime})
            public_url = await bucket.get_public_url(name)
        except StayHubError:
            raise
        except Exception as e:
            logger.error("Upload of %s failed: %s", name, str(e), exc_info=True)
            raise FileStorageError(
                message="No se pudo subir la imagen. Inténtalo de nuevo.",
                context={"bucket": settings.profile_image_bucket, "original_error": type(e).__name__},
            )

        logger.info("Stored profile image %s (%d bytes)", name, len(content))
        return StoredImage(name=name, url=public_url)

    async def cleanup_object(self, name: str) -> None:
        """
        Best-effort removal of an uploaded object whose URL never made it
        into the database. Failures are logged, never raised.
        """
        try:
            client = await identity_service.admin_client()
            await client.storage.from_(settings.profile_image_bucket).remove([name])
            logger.info("Cleaned up orphaned image %s", name)
        except Exception as e:
            logger.warning("Failed to clean up image %s: %s", name, str(e))


# Singleton instance
file_service = FileService()
