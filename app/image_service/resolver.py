from concurrent.futures import Executor
from typing import List, Optional
import logging

from app.image_service.classifier import is_image
from app.image_service.lister import ObjectLister
from app.image_service.models import ImageRecord, ObjectDescriptor
from app.exceptions import NoImagesFound

log = logging.getLogger(__name__)

def to_image_record(obj: ObjectDescriptor) -> Optional[ImageRecord]:
    """Maps a listed object to an ImageRecord, or None when it is not an image."""
    if not is_image(obj.key):
        return None
    return ImageRecord(key=obj.key, size=obj.size, modified_at=obj.modified_at)

class RecentPhotoResolver:
    """
        Picks the newest images under a prefix.

        Classification runs on the shared executor; executor.map hands results
        back in listing order, so the merge is single threaded and the final
        order only depends on modified_at. Ties keep listing order, which for
        S3 is ascending key order.
    """
    def __init__(self, lister: ObjectLister, executor: Executor):
        self.lister = lister
        self.executor = executor

    def resolve(self, prefix: str, limit: int) -> List[ImageRecord]:
        objects = list(self.lister.list_objects(prefix))

        images = [r for r in self.executor.map(to_image_record, objects) if r is not None]
        if not images:
            raise NoImagesFound(prefix)

        # sorted() is stable with reverse=True as well
        images = sorted(images, key=lambda r: r.modified_at, reverse=True)
        if limit > 0:
            images = images[:limit]

        log.debug("Resolved %d of %d objects under %s", len(images), len(objects), prefix)
        return images
