import logging
import os
import uuid

from fastapi import UploadFile

from config import settings
from errors import BadRequestError

logger = logging.getLogger(__name__)


async def save_image(file: UploadFile, folder: str) -> str:
    """Store an uploaded image under the upload directory and return its public URL."""
    if file.content_type not in settings.allowed_upload_types:
        raise BadRequestError("Only image files (JPEG, PNG, GIF) are allowed")

    contents = await file.read()
    if len(contents) > settings.MAX_UPLOAD_SIZE:
        raise BadRequestError(f"File size too large. Maximum size is {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB.")

    _, extension = os.path.splitext(file.filename or "")
    filename = f"{uuid.uuid4()}{extension.lower()}"
    directory = os.path.join(settings.UPLOAD_DIR, folder)
    os.makedirs(directory, exist_ok=True)
    with open(os.path.join(directory, filename), "wb") as out:
        out.write(contents)

    logger.info(f"Stored upload {folder}/{filename} ({len(contents)} bytes)")
    return f"/uploads/{folder}/{filename}"
