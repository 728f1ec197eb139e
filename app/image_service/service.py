from concurrent.futures import ThreadPoolExecutor
from io import BytesIO
from typing import List, Tuple
import logging
from PIL import Image, UnidentifiedImageError
from botocore.exceptions import BotoCoreError, ClientError

from app.storage.s3 import S3Service
from app.image_service.cache import ResultCache
from app.image_service.lister import ObjectLister
from app.image_service.models import ImageRecord, CacheKey, LAST_N, LAST_ONE, namespace_prefix
from app.image_service.presigner import UrlPresigner
from app.image_service.resolver import RecentPhotoResolver
from app.exceptions import TransportError, DecodeError

log = logging.getLogger(__name__)

def download_photo(s3: S3Service, key: str) -> bytes:
    """Downloads the original object bytes."""
    try:
        return s3.download(key)
    except (BotoCoreError, ClientError) as e:
        log.error(f"S3 download of {key} failed: {e}")
        raise TransportError(f"error downloading {key}: {e}") from e

def download_small_photo(s3: S3Service, key: str, size: Tuple[int, int] = (800, 600)) -> bytes:
    """Downloads an image and returns it resized to `size` as PNG."""
    data = download_photo(s3, key)
    try:
        with Image.open(BytesIO(data)) as img:
            if img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGBA")
            resized = img.resize(size, Image.Resampling.LANCZOS)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise DecodeError(f"error decoding image {key}: {e}") from e

    buf = BytesIO()
    try:
        resized.save(buf, format="PNG")
    except (OSError, ValueError) as e:
        raise DecodeError(f"error encoding resized image {key}: {e}") from e
    return buf.getvalue()

class PhotoFetchService:
    """
        Cached "most recent photos" lookups for a user.

        A cache miss runs one pass of list, filter, sort, truncate and presign,
        then stores the result. Failures propagate without retry and leave the
        cache untouched. Concurrent misses for the same key both do the work;
        the last one to finish wins the cache slot.
    """
    def __init__(self, s3: S3Service, cache: ResultCache, presign_ttl: int = 3600, max_workers: int = 8):
        self.cache = cache
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="photo-fetch")
        self.resolver = RecentPhotoResolver(ObjectLister(s3), self.executor)
        self.presigner = UrlPresigner(s3, self.executor, ttl=presign_ttl)

    def get_last_x_photos_for_user(self, user_id: str, photo_num: int) -> List[ImageRecord]:
        cache_key = CacheKey(LAST_N, user_id, photo_num)
        cached = self.cache.get(cache_key)
        if cached is not None:
            log.debug("Cache hit for %s", cache_key)
            return list(cached)

        images = self.resolver.resolve(namespace_prefix(user_id), photo_num)
        images = self.presigner.presign_all(images)

        self.cache.set(cache_key, tuple(images))
        log.info("Fetched %d photos for user %s", len(images), user_id)
        return images

    def get_last_photo_for_user(self, user_id: str) -> ImageRecord:
        cache_key = CacheKey(LAST_ONE, user_id, 1)
        cached = self.cache.get(cache_key)
        if cached is not None:
            log.debug("Cache hit for %s", cache_key)
            return cached

        latest = self.resolver.resolve(namespace_prefix(user_id), 1)[0]
        latest = self.presigner.presign_record(latest)

        self.cache.set(cache_key, latest)
        log.info("Fetched last photo %s for user %s", latest.key, user_id)
        return latest

    def close(self):
        self.executor.shutdown(wait=True)
