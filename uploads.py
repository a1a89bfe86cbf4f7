# uploads.py
import logging
import re
import time
from pathlib import Path
from typing import Any, Optional

from starlette.datastructures import UploadFile

from errors import ClientError, StorageUnavailable

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads/"
ALLOWED_IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


async def save_upload(upload: Any, upload_dir: Path) -> Optional[str]:
    """
    Stores an uploaded image and returns its public URL, or None when the
    form carried no file.
    """
    if not isinstance(upload, UploadFile) or not upload.filename:
        return None

    original_name = Path(upload.filename).name
    extension = Path(original_name).suffix.lower()
    if extension not in ALLOWED_IMAGE_EXTENSIONS:
        raise ClientError(
            "Invalid file type. Only image files "
            f"({', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))}) are accepted.",
            "INVALID_FILE_TYPE",
        )

    stem = _UNSAFE_CHARS.sub("_", Path(original_name).stem).strip("_") or "image"
    filename = f"{int(time.time() * 1000)}-{stem}{extension}"
    filepath = upload_dir / filename

    content = await upload.read()
    try:
        upload_dir.mkdir(parents=True, exist_ok=True)
        with open(filepath, "wb") as buffer:
            buffer.write(content)
    except OSError as e:
        logger.error("Error saving upload %s: %s", filepath, e)
        raise StorageUnavailable("Error saving uploaded image.", "UPLOAD_WRITE_ERROR") from e

    logger.info("Saved upload %s (%d bytes)", filepath, len(content))
    return UPLOAD_URL_PREFIX + filename


def remove_upload(image_url: Optional[str], upload_dir: Path) -> None:
    """Deletes the file behind an /uploads/ URL. Failures are logged only."""
    if not isinstance(image_url, str) or not image_url.startswith(UPLOAD_URL_PREFIX):
        return

    filename = image_url[len(UPLOAD_URL_PREFIX):]
    if not filename or Path(filename).name != filename:
        logger.warning("Refusing to delete suspicious upload path: %s", image_url)
        return

    path = upload_dir / filename
    if path.exists():
        try:
            path.unlink()
            logger.info("Deleted file: %s", path)
        except OSError as e:
            logger.error("Error deleting file %s: %s", path, e)
