"""Object storage for documents uploaded with a registration.

Photos arrive as base64 data URIs and are externalized before the
registration record is written; only the public URL is stored.
"""
import base64
import binascii
import io
import logging
import mimetypes
import re
import uuid

import cloudinary.exceptions
import cloudinary.uploader
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils.module_loading import import_string

from portal.errors import UpstreamFailure, ValidationFailure

logger = logging.getLogger(__name__)

DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]*)*),(?P<payload>.*)$", re.S)
ALLOWED_MIME = {"image/jpeg", "image/png", "image/webp", "image/gif", "application/pdf"}


class StorageError(UpstreamFailure):
    default_message = "Document upload failed. Please try again."


def decode_data_uri(value: str) -> tuple[bytes, str]:
    """Split ``data:<mime>;base64,<payload>`` into ``(bytes, extension)``."""
    m = DATA_URI_RE.match((value or "").strip())
    if not m or ";base64" not in (m.group("params") or ""):
        raise ValidationFailure("Uploaded document must be a base64 data URI")
    mime = (m.group("mime") or "").lower()
    if mime not in ALLOWED_MIME:
        raise ValidationFailure(f"Unsupported document type: {mime or 'unknown'}")
    try:
        data = base64.b64decode(m.group("payload"), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationFailure("Uploaded document is not valid base64")
    if not data:
        raise ValidationFailure("Uploaded document is empty")
    if len(data) > settings.UPLOAD_MAX_BYTES:
        raise ValidationFailure("Uploaded document is too large")
    ext = {"image/jpeg": ".jpg"}.get(mime) or mimetypes.guess_extension(mime) or ""
    return data, ext


class DjangoMediaStorage:
    """Save through Django's default storage and return an absolute URL."""

    def upload(self, data: bytes, path: str) -> str:
        try:
            name = default_storage.save(path, ContentFile(data))
            url = default_storage.url(name)
        except Exception as e:
            logger.exception("Failed to store upload at %s", path)
            raise StorageError() from e
        if url.startswith("/"):
            url = settings.PUBLIC_BASE_URL + url
        return url

    def delete(self, path: str) -> None:
        try:
            default_storage.delete(path)
        except Exception as e:
            raise StorageError() from e


class CloudinaryStorage:
    """Uploads through the Cloudinary SDK; ``path`` becomes folder + public id."""

    def __init__(self, cloud_name=None, api_key=None, api_secret=None, folder=None):
        self.cloud_name = cloud_name or settings.CLOUDINARY_CLOUD_NAME
        self.api_key = api_key or settings.CLOUDINARY_API_KEY
        self.api_secret = api_secret or settings.CLOUDINARY_API_SECRET
        self.folder = folder if folder is not None else settings.CLOUDINARY_UPLOAD_FOLDER

    def _credentials(self) -> dict:
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise StorageError("Document storage is not configured.")
        return {"cloud_name": self.cloud_name, "api_key": self.api_key, "api_secret": self.api_secret}

    def _locate(self, path: str) -> tuple[str, str]:
        directory, _, filename = path.rpartition("/")
        folder = "/".join(p for p in (self.folder, directory) if p)
        return folder, filename.rsplit(".", 1)[0]

    def upload(self, data: bytes, path: str) -> str:
        credentials = self._credentials()
        folder, public_id = self._locate(path)
        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(data),
                folder=folder,
                public_id=public_id,
                resource_type="auto",
                **credentials,
            )
        except cloudinary.exceptions.Error as e:
            logger.error("Cloudinary upload failed for %s: %s", path, e)
            raise StorageError() from e
        url = (result or {}).get("secure_url")
        if not url:
            logger.error("Cloudinary upload for %s returned no secure_url: %s", path, str(result)[:500])
            raise StorageError()
        return url

    def delete(self, path: str) -> None:
        credentials = self._credentials()
        folder, public_id = self._locate(path)
        try:
            result = cloudinary.uploader.destroy(f"{folder}/{public_id}" if folder else public_id, **credentials)
        except cloudinary.exceptions.Error as e:
            raise StorageError() from e
        if (result or {}).get("result") not in ("ok", "not found"):
            raise StorageError(f"Cloudinary refused to delete {path}")


def get_storage():
    return import_string(settings.UPLOAD_STORAGE_BACKEND)()


class DocumentBatch:
    """Documents uploaded for one submission.

    ``upload()`` decodes a data URI and stores it under ``directory``,
    returning the public URL. ``discard()`` removes whatever was stored so
    far; used when a later upload or the record write fails.
    """

    def __init__(self, storage=None):
        self.storage = storage or get_storage()
        self.paths: list[str] = []

    def upload(self, value: str, directory: str) -> str:
        data, ext = decode_data_uri(value)
        path = f"{directory}/{uuid.uuid4().hex}{ext}"
        url = self.storage.upload(data, path)
        self.paths.append(path)
        return url

    def discard(self) -> None:
        for path in reversed(self.paths):
            try:
                self.storage.delete(path)
            except StorageError:
                logger.warning("Could not remove orphaned upload %s", path, exc_info=True)
        self.paths = []
