import boto3
from botocore.config import Config
from typing import Optional, List, Tuple, Dict, Any
from app.settings import StorageConfig
import logging

log = logging.getLogger(__name__)

# -------------------------
# S3 Service
# -------------------------
class S3Service:
    def __init__(self, config: StorageConfig, page_size: int = 1000):
        self.config = config
        self.page_size = page_size
        session = boto3.session.Session(region_name=config.region)
        kwargs = {
            "aws_access_key_id": config.access_key_id,
            "aws_secret_access_key": config.secret_access_key,
        }
        if config.endpoint_url:
            kwargs["endpoint_url"] = config.endpoint_url
            # S3-compatible stores generally need path-style addressing
            kwargs["config"] = Config(s3={"addressing_style": "path"})

        self.client = session.client("s3", **kwargs)
        log.info("Initialized S3 client for bucket %s", config.bucket)

    @property
    def bucket(self) -> str:
        return self.config.bucket

    def list_objects_page(
        self,
        prefix: str,
        continuation_token: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], Optional[str], bool]:
        """Returns (items, next_token, is_last) for one ListObjectsV2 page."""
        kwargs = {"Bucket": self.bucket, "Prefix": prefix, "MaxKeys": self.page_size}
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token
        resp = self.client.list_objects_v2(**kwargs)
        items = resp.get("Contents", [])
        next_token = resp.get("NextContinuationToken")
        is_last = not resp.get("IsTruncated", False)
        log.debug("Listed %d objects under s3://%s/%s", len(items), self.bucket, prefix)
        return items, next_token, is_last

    def download(self, key: str) -> bytes:
        resp = self.client.get_object(Bucket=self.bucket, Key=key)
        body = resp["Body"]
        try:
            return body.read()
        finally:
            body.close()

    def generate_presigned_url(self, key: str, expires_in: int) -> str:
        url = self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in,
        )
        if self.config.public_endpoint_url and self.config.endpoint_url:
            url = url.replace(self.config.endpoint_url, self.config.public_endpoint_url)
        return url

    def close(self):
        self.client.close()
        log.info("Closed S3 client")
