import logging

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from fastapi import HTTPException

from config.env import (
    CLOUDINARY_CLOUD_NAME,
    CLOUDINARY_API_KEY,
    CLOUDINARY_API_SECRET,
    UPLOAD_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Request timed out. Please check your network or try again later."
CONNECTION_MESSAGE = "Cannot connect to server. Please check your network or server status."

cloudinary.config(
    cloud_name=CLOUDINARY_CLOUD_NAME,
    api_key=CLOUDINARY_API_KEY,
    api_secret=CLOUDINARY_API_SECRET,
    secure=True,
)


def classify_upload_error(error: Exception, is_video: bool) -> HTTPException:
    # the SDK wraps transport failures in its own Error with the urllib3 repr
    text = str(error)
    lowered = text.lower()

    if isinstance(error, TimeoutError) or "timed out" in lowered or "timeout" in lowered:
        return HTTPException(status_code=504, detail=TIMEOUT_MESSAGE)

    if isinstance(error, ConnectionError) or "connection" in lowered or "max retries" in lowered:
        return HTTPException(status_code=503, detail=CONNECTION_MESSAGE)

    kind = "video" if is_video else "image"
    return HTTPException(status_code=502, detail=text or f"Failed to upload {kind}.")


def upload_media(file, folder: str, is_video: bool = False) -> str:
    """
    Uploads one file and returns its secure URL.
    Blocking; call through asyncio.to_thread from request handlers.
    """
    kind = "video" if is_video else "image"

    try:
        result = cloudinary.uploader.upload(
            file,
            folder=folder,
            resource_type=kind,
            timeout=UPLOAD_TIMEOUT_SECONDS,
        )
    except (cloudinary.exceptions.Error, OSError) as e:
        logger.error("%s upload error: %s", kind.capitalize(), e)
        raise classify_upload_error(e, is_video)

    url = result.get("secure_url")
    if not url:
        raise HTTPException(
            status_code=502,
            detail=f"Failed to upload {kind} to Cloudinary.",
        )

    return url
