from typing import Iterator
import logging
from botocore.exceptions import BotoCoreError, ClientError

from app.storage.s3 import S3Service
from app.image_service.models import ObjectDescriptor
from app.exceptions import TransportError

log = logging.getLogger(__name__)

class ObjectListing:
    """
        Lazy view over every object under a prefix.

        Each iteration starts again from the first page, so the listing can be
        walked more than once. A failing page raises TransportError and stops
        the walk; callers should materialize the listing in one go so nothing
        partial survives the failure.
    """
    def __init__(self, s3: S3Service, prefix: str):
        self.s3 = s3
        self.prefix = prefix

    def __iter__(self) -> Iterator[ObjectDescriptor]:
        token = None
        pages = 0
        while True:
            try:
                items, token, is_last = self.s3.list_objects_page(self.prefix, token)
            except (BotoCoreError, ClientError) as e:
                log.error(f"Listing {self.prefix} failed after {pages} pages: {e}")
                raise TransportError(f"error listing objects under '{self.prefix}': {e}") from e
            pages += 1
            for item in items:
                yield ObjectDescriptor(
                    key=item["Key"],
                    size=item.get("Size", 0),
                    modified_at=item["LastModified"],
                )
            if is_last or not token:
                return

class ObjectLister:
    def __init__(self, s3: S3Service):
        self.s3 = s3

    def list_objects(self, prefix: str) -> ObjectListing:
        return ObjectListing(self.s3, prefix)
