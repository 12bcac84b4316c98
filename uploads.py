"""Image uploads stored on local disk and served under ``/uploads``.

Disk reads, writes and removals run in the threadpool; the public helpers
are coroutines so request handlers never block the event loop on them.
"""
import logging
import os
import secrets
import time
from typing import Iterable, List, Optional

from dotenv import load_dotenv
from fastapi import HTTPException, UploadFile, status
from starlette.concurrency import run_in_threadpool

load_dotenv()

logger = logging.getLogger(__name__)

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
UPLOAD_URL_PREFIX = "/uploads/"
MAX_IMAGE_BYTES = 5 * 1024 * 1024
MAX_PLACE_IMAGES = 5
CHUNK_SIZE = 1024 * 1024


def is_image(upload: UploadFile) -> bool:
    return bool(upload.content_type and upload.content_type.startswith("image/"))


def _stored_name(filename: Optional[str]) -> str:
    extension = os.path.splitext(filename or "")[1].lower()
    return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}{extension}"


def disk_path(url: str) -> Optional[str]:
    """Map an ``/uploads/<name>`` URL back to its file; other values are not ours."""
    if not url or not url.startswith(UPLOAD_URL_PREFIX):
        return None
    return os.path.join(UPLOAD_DIR, os.path.basename(url))


def _write_image(upload: UploadFile) -> str:
    os.makedirs(UPLOAD_DIR, exist_ok=True)
    name = _stored_name(upload.filename)
    path = os.path.join(UPLOAD_DIR, name)
    written = 0
    with open(path, "wb") as buffer:
        while True:
            chunk = upload.file.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > MAX_IMAGE_BYTES:
                break
            buffer.write(chunk)

    if written > MAX_IMAGE_BYTES:
        os.remove(path)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File too large")
    return UPLOAD_URL_PREFIX + name


def _remove_files(urls: List[Optional[str]]) -> None:
    for url in urls:
        path = disk_path(url)
        if path is None:
            continue
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("Could not remove upload %s", path, exc_info=True)


async def save_image(upload: UploadFile) -> str:
    """Persist one image part and return its public URL."""
    if not is_image(upload):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only image files are allowed!")
    return await run_in_threadpool(_write_image, upload)


async def save_images(uploads: Optional[Iterable[UploadFile]], limit: int = MAX_PLACE_IMAGES) -> List[str]:
    """Persist at most ``limit`` images; parts past the limit are never written."""
    saved: List[str] = []
    for upload in list(uploads or [])[:max(limit, 0)]:
        if not upload.filename:
            continue
        try:
            saved.append(await save_image(upload))
        except Exception:
            await discard_uploads(saved)
            raise
    return saved


async def discard_uploads(urls: Iterable[Optional[str]]) -> None:
    """Best-effort removal of stored images."""
    await run_in_threadpool(_remove_files, list(urls))
