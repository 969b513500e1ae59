import logging
import os
import time

from fastapi import UploadFile

from lapor.core.config import settings
from lapor.core.errors import ApiError, PersistenceError, ValidationFailed

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


def bucket_dir() -> str:
    return os.path.join(settings.UPLOAD_DIR, settings.STORAGE_BUCKET)


def ensure_upload_dir() -> None:
    os.makedirs(bucket_dir(), exist_ok=True)


def object_key(owner_id: str, content_type: str) -> str:
    # the client filename never reaches the key; /storage serves by extension
    ext = ALLOWED_CONTENT_TYPES[content_type]
    return f"{owner_id}-{int(time.time() * 1000)}.{ext}"


def public_url(key: str) -> str:
    return f"{settings.PUBLIC_BASE_URL}/storage/{settings.STORAGE_BUCKET}/{key}"


def validate_image(file: UploadFile) -> None:
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationFailed.from_errors({"image": "Hanya gambar jpeg/png/webp/gif yang diperbolehkan"})


def save_image(file: UploadFile, owner_id: str) -> str:
    """
    Stream an image into the bucket under `{owner_id}-{millis}.{ext}`.
    Returns its public URL. Partial files are removed when the size limit trips.
    """
    validate_image(file)
    ensure_upload_dir()

    key = object_key(owner_id, file.content_type)
    path = os.path.join(bucket_dir(), key)

    max_bytes = settings.MAX_UPLOAD_MB * 1024 * 1024
    bytes_written = 0

    try:
        with open(path, "wb") as out:
            while True:
                chunk = file.file.read(1024 * 1024)  # 1MB chunks
                if not chunk:
                    break
                bytes_written += len(chunk)
                if bytes_written > max_bytes:
                    raise ApiError(f"Ukuran file maksimal {settings.MAX_UPLOAD_MB}MB", status_code=413)
                out.write(chunk)
    except ApiError:
        _remove_quietly(path)
        raise
    except OSError as e:
        _remove_quietly(path)
        logger.exception("Upload of %s failed", key)
        raise PersistenceError("Gagal mengupload gambar") from e

    logger.info("Stored %s (%d bytes)", key, bytes_written)
    return public_url(key)


def _remove_quietly(path: str) -> None:
    if os.path.exists(path):
        try:
            os.remove(path)
        except OSError:
            logger.warning("Could not remove partial upload %s", path)
