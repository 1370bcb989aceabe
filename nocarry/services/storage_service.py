"""Object storage client for project files (storage REST API over httpx)."""
import logging
import posixpath
import uuid
from typing import Optional

import httpx

from nocarry.config import settings
from nocarry.errors import ValidationError

logger = logging.getLogger(__name__)


def _base() -> str:
    return f"{settings.STORAGE_URL.rstrip('/')}/storage/v1/object"


def _headers() -> dict[str, str]:
    return {
        "Authorization": f"Bearer {settings.STORAGE_API_KEY}",
        "apikey": settings.STORAGE_API_KEY,
    }


def clean_filename(filename: Optional[str]) -> str:
    """Strip any directory part a client sent along with the file name."""
    name = posixpath.basename((filename or "").replace("\\", "/")).strip()
    if name in ("", ".", ".."):
        raise ValidationError("Invalid file name")
    return name


def project_path(project_id: str, filename: str) -> str:
    """Objects live under their project's prefix, one object per upload."""
    return f"{project_id}/{uuid.uuid4().hex}-{clean_filename(filename)}"


def public_url(path: str) -> str:
    return f"{_base()}/public/{settings.STORAGE_BUCKET}/{path}"


def path_from_url(url: str) -> Optional[str]:
    """Recover the bucket-relative path from a public URL, None if it isn't ours."""
    marker = f"/{settings.STORAGE_BUCKET}/"
    head, sep, tail = url.partition(marker)
    if not sep or not tail:
        return None
    return tail


def in_project(project_id: str, path: Optional[str]) -> bool:
    """True when ``path`` names an object under the project's own prefix."""
    if not path or not path.startswith(f"{project_id}/"):
        return False
    return not any(part in ("", ".", "..") for part in path.split("/"))


def upload(path: str, content: bytes, content_type: str = "application/octet-stream") -> str:
    """Store ``content`` at ``path`` and return its retrievable URL."""
    resp = httpx.post(
        f"{_base()}/{settings.STORAGE_BUCKET}/{path}",
        headers={**_headers(), "Content-Type": content_type},
        content=content,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
    resp.raise_for_status()
    logger.info("Uploaded %s (%d bytes) to bucket %s", path, len(content), settings.STORAGE_BUCKET)
    return public_url(path)


def remove(path: str) -> bool:
    """Delete the object at ``path``. Returns False when nothing was removed."""
    if not settings.STORAGE_URL:
        logger.info("Object storage not configured; skipping removal of %s", path)
        return False
    try:
        resp = httpx.request(
            "DELETE",
            f"{_base()}/{settings.STORAGE_BUCKET}",
            headers=_headers(),
            json={"prefixes": [path]},
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as exc:
        logger.error("Removing %s from storage failed: %s", path, exc)
        return False
    if resp.is_error:
        logger.error("Storage refused to remove %s (%s): %s", path, resp.status_code, resp.text)
        return False
    logger.info("Removed %s from bucket %s", path, settings.STORAGE_BUCKET)
    return True
