import io
import logging
import os
import uuid
from pathlib import Path

from minio import Minio
from minio.error import S3Error

from app.core.config import settings
from app.core.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}

# Object storage is optional: without MINIO_ENDPOINT images go to UPLOAD_DIR
# and are served by the /uploads static mount.
MINIO_ENDPOINT = os.environ.get("MINIO_ENDPOINT")
MINIO_ACCESS_KEY = os.environ.get("MINIO_ACCESS_KEY") or "minioadmin"
MINIO_SECRET_KEY = os.environ.get("MINIO_SECRET_KEY") or "minioadmin"
MINIO_BUCKET = os.environ.get("MINIO_BUCKET", "cantina")
MINIO_USE_SSL = str(os.environ.get("MINIO_USE_SSL", "0")).lower() in ("1", "true", "yes")
MINIO_PUBLIC_URL = os.environ.get("MINIO_PUBLIC_URL")


def validate_image(content_type: str, size: int) -> str:
    """Return the file extension for an accepted image or raise ValidationError."""
    ext = ALLOWED_IMAGE_TYPES.get((content_type or "").lower())
    if ext is None:
        raise ValidationError("Formato de imagem inválido. Use JPEG, PNG, WEBP ou GIF")
    if size == 0:
        raise ValidationError("Arquivo de imagem vazio")
    if size > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise ValidationError(f"Imagem excede o tamanho máximo de {settings.MAX_UPLOAD_SIZE_MB}MB")
    return ext


def _minio_client() -> Minio:
    endpoint = MINIO_ENDPOINT.replace("https://", "").replace("http://", "")
    return Minio(endpoint, access_key=MINIO_ACCESS_KEY, secret_key=MINIO_SECRET_KEY, secure=MINIO_USE_SSL)


def _store_in_minio(key: str, content: bytes, content_type: str) -> str:
    client = _minio_client()
    client.put_object(
        MINIO_BUCKET,
        key,
        data=io.BytesIO(content),
        length=len(content),
        content_type=content_type,
    )
    base = (MINIO_PUBLIC_URL or MINIO_ENDPOINT).rstrip("/")
    if not base.startswith(("http://", "https://")):
        base = ("https://" if MINIO_USE_SSL else "http://") + base
    return f"{base}/{MINIO_BUCKET}/{key}"


def _store_on_disk(key: str, content: bytes) -> str:
    target = Path(settings.UPLOAD_DIR) / key
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)
    return f"/uploads/{key}"


def store_product_image(content: bytes, content_type: str) -> str:
    """Persist an uploaded product image and return the URL to store in image_url."""
    ext = validate_image(content_type, len(content))
    key = f"products/{uuid.uuid4().hex}{ext}"
    if MINIO_ENDPOINT:
        url = _store_in_minio(key, content, content_type)
    else:
        url = _store_on_disk(key, content)
    logger.info("stored product image key=%s url=%s", key, url)
    return url


def discard_product_image(url: str) -> None:
    """Remove a previously stored image; missing files are ignored."""
    if not url:
        return
    if url.startswith("/uploads/"):
        path = Path(settings.UPLOAD_DIR) / url[len("/uploads/"):]
        try:
            path.unlink()
        except FileNotFoundError:
            pass
    elif MINIO_ENDPOINT and f"/{MINIO_BUCKET}/" in url:
        key = url.split(f"/{MINIO_BUCKET}/", 1)[1]
        try:
            _minio_client().remove_object(MINIO_BUCKET, key)
        except S3Error:
            logger.warning("failed to remove old image key=%s", key)
