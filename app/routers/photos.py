from fastapi import APIRouter, Depends, Query, Response
from typing import List, Optional
import logging

from app.storage.s3 import S3Service
from app.dependencies.dependencies import get_s3_service, get_photo_service, get_current_user_id
from app.image_service.service import PhotoFetchService, download_photo, download_small_photo
from app.image_service.models import ImageRecord
from app.settings import settings

log = logging.getLogger(__name__)

router = APIRouter(
    tags=["photos"],
    dependencies=[Depends(get_current_user_id)],
)

SMALL_IMAGE_TYPES = {"small", "image/small"}

@router.get("/photo/{key:path}", response_class=Response)
def get_photo_by_key(
    key: str,
    image_type: Optional[str] = Query(None, alias="Image-Type"),
    s3: S3Service = Depends(get_s3_service),
):
    """Streams a photo, resized to the small size when Image-Type=small."""
    if image_type in SMALL_IMAGE_TYPES:
        size = (settings.small_photo_width, settings.small_photo_height)
        photo = download_small_photo(s3, key, size=size)
    else:
        photo = download_photo(s3, key)
    return Response(content=photo, media_type="image/png")

@router.get("/user/{user_id}/photos", response_model=List[ImageRecord])
def get_last_photos_for_user(
    user_id: str,
    photo_num: int = Query(...),
    photos: PhotoFetchService = Depends(get_photo_service),
):
    """Returns the user's most recent photos, newest first, with presigned URLs."""
    return photos.get_last_x_photos_for_user(user_id, photo_num)

@router.get("/user/{user_id}/photo", response_model=ImageRecord)
def get_last_photo_for_user(
    user_id: str,
    photos: PhotoFetchService = Depends(get_photo_service),
):
    """Returns the user's most recent photo with a presigned URL."""
    return photos.get_last_photo_for_user(user_id)
