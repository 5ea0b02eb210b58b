"""
Image Store — Persists uploaded ID documents and selfies.
Files are written under UPLOAD_DIR; the returned reference is the relative path.
"""
import logging
import os
import uuid

from app.config import get_settings
from app.errors import UpstreamServiceError

settings = get_settings()
logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class ImageStore:
    """Stores images and hands back an opaque reference."""

    @staticmethod
    def save(file_contents: bytes, content_type: str, folder: str) -> str:
        """Write an image to ``UPLOAD_DIR/<folder>/``.

        Raises:
            UpstreamServiceError: If the image could not be stored.
        """
        extension = _EXTENSIONS.get(content_type, "img")
        reference = f"{folder}/{folder}_{uuid.uuid4().hex}.{extension}"
        path = os.path.join(settings.UPLOAD_DIR, reference)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(file_contents)
        except OSError as e:
            logger.error("Image upload failed for %s: %s", folder, e)
            raise UpstreamServiceError("Failed to store uploaded image. Please try again.")
        return reference

    @staticmethod
    def delete(reference: str | None) -> None:
        """Remove a stored image; missing files are ignored."""
        if not reference:
            return
        try:
            os.remove(os.path.join(settings.UPLOAD_DIR, reference))
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not delete image %s: %s", reference, e)
