# accounts/app/services/media.py
"""
Media hosting (Cloudinary).

Incoming multipart files are first written to UPLOAD_TEMP_DIR, then pushed
to Cloudinary. The local copy is removed after every upload attempt, whether
the upload succeeded or not.
"""
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import aiofiles
import cloudinary.exceptions
import cloudinary.uploader
from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from accounts.app.core.config import Settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass
class UploadedMedia:
    url: str


async def save_upload(upload: Optional[UploadFile], temp_dir: Union[str, Path]) -> Optional[Path]:
    """
    Store an incoming file in the temp directory.

    Returns None when no file (or an empty filename) was sent.
    """
    if upload is None or not upload.filename:
        return None

    directory = Path(temp_dir)
    directory.mkdir(parents=True, exist_ok=True)

    # Prefix keeps concurrent uploads with the same filename apart
    destination = directory / f"{uuid.uuid4().hex}-{Path(upload.filename).name}"
    try:
        async with aiofiles.open(destination, "wb") as out:
            while chunk := await upload.read(CHUNK_SIZE):
                await out.write(chunk)
    except OSError:
        destination.unlink(missing_ok=True)
        raise
    return destination


def discard_local_file(path: Optional[Path]) -> None:
    if path is not None:
        path.unlink(missing_ok=True)


class MediaUploader:
    """Uploads local files to Cloudinary with credentials from settings."""

    def __init__(self, settings: Settings):
        self.options = {
            "cloud_name": settings.CLOUDINARY_CLOUD_NAME,
            "api_key": settings.CLOUDINARY_API_KEY,
            "api_secret": settings.CLOUDINARY_API_SECRET,
        }

    def _upload(self, local_path: Path) -> dict:
        return cloudinary.uploader.upload(str(local_path), resource_type="auto", **self.options)

    async def upload(self, local_path: Optional[Path]) -> Optional[UploadedMedia]:
        """
        Upload a file and return its hosted URL.

        Returns:
            UploadedMedia, or None if there was nothing to upload or the
            upload failed
        """
        if local_path is None:
            return None

        try:
            response = await run_in_threadpool(self._upload, local_path)
        # ValueError: the SDK rejects missing credentials before any request
        except (cloudinary.exceptions.Error, OSError, ValueError) as e:
            logger.error("Upload of %s failed: %s", local_path.name, e)
            return None
        finally:
            discard_local_file(local_path)

        url = response.get("secure_url") or response.get("url")
        if not url:
            logger.error("Upload of %s returned no URL", local_path.name)
            return None

        logger.info("Uploaded %s to %s", local_path.name, url)
        return UploadedMedia(url=url)
