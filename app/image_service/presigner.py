from concurrent.futures import Executor
from typing import List, Optional
import logging
from botocore.exceptions import BotoCoreError, ClientError

from app.storage.s3 import S3Service
from app.image_service.models import ImageRecord
from app.exceptions import PresignError

log = logging.getLogger(__name__)

class UrlPresigner:
    def __init__(self, s3: S3Service, executor: Executor, ttl: int):
        self.s3 = s3
        self.executor = executor
        self.ttl = ttl

    def presign(self, key: str, ttl: Optional[int] = None) -> str:
        """Generates a time-bounded GET URL for one object."""
        try:
            return self.s3.generate_presigned_url(key, expires_in=self.ttl if ttl is None else ttl)
        except (BotoCoreError, ClientError) as e:
            log.error(f"Presigning {key} failed: {e}")
            raise PresignError(f"error generating presigned URL for {key}: {e}") from e

    def presign_record(self, record: ImageRecord) -> ImageRecord:
        return record.model_copy(update={"url": self.presign(record.key)})

    def presign_all(self, records: List[ImageRecord]) -> List[ImageRecord]:
        """
            Presigns every record concurrently.

            All-or-nothing: the first failure propagates and the already signed
            copies are dropped. Input records are left untouched.
        """
        return list(self.executor.map(self.presign_record, records))
