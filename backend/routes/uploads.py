# backend/routes/uploads.py

import asyncio

from fastapi import APIRouter, Depends, UploadFile, File, Form, HTTPException, status

from config.constants import MAX_IMAGE_SIZE, MAX_VIDEO_SIZE
from config.env import CLOUDINARY_FOLDER
from utils.cloudinary import upload_media
from utils.security import get_current_user

router = APIRouter(tags=["Uploads"])


# =========================
# UPLOAD MEDIA (IMAGE / VIDEO)
# =========================
@router.post("/upload")
async def upload(
    file: UploadFile = File(...),
    isVideo: bool = Form(False),
    user=Depends(get_current_user),
):
    kind = "video" if isVideo else "image"

    # validate file type
    if not file.content_type or not file.content_type.startswith(f"{kind}/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only {kind} files are allowed",
        )

    max_size = MAX_VIDEO_SIZE if isVideo else MAX_IMAGE_SIZE
    if file.size is not None and file.size > max_size:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File exceeds {max_size // (1024 * 1024)}MB limit",
        )

    # upload to cloudinary
    url = await asyncio.to_thread(
        upload_media,
        file.file,
        f"{CLOUDINARY_FOLDER}/uploads/{user['uid']}",
        isVideo,
    )

    # nothing is saved here; callers attach the URL to their own documents
    return {"url": url}
