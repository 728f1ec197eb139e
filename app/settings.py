from pydantic_settings import BaseSettings
from pydantic import BaseModel, Field, model_validator
from typing import Optional

class StorageConfig(BaseModel):
    """Immutable object store configuration handed to the storage layer."""
    bucket: str
    region: str
    endpoint_url: Optional[str] = None
    public_endpoint_url: Optional[str] = None
    access_key_id: str
    secret_access_key: str

    model_config = {"frozen": True}

class Settings(BaseSettings):
    aws_region: str = Field("us-east-1", env="AWS_REGION")
    s3_bucket: str = Field("photo-gallery-bucket", env="S3_BUCKET")
    users_table: str = Field("Users", env="USERS_TABLE")
    aws_endpoint_url: Optional[str] = Field(None, env="AWS_ENDPOINT_URL")
    # Rewrites presigned URLs when the store is reached through a different host
    public_endpoint_url: Optional[str] = Field(None, env="PUBLIC_ENDPOINT_URL")

    aws_access_key_id: str = Field("test", env="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: str = Field("test", env="AWS_SECRET_ACCESS_KEY")

    presign_expire_seconds: int = Field(3600, env="PRESIGN_EXPIRE_SECONDS")
    cache_ttl_seconds: int = Field(300, env="CACHE_TTL_SECONDS")
    cache_sweep_seconds: int = Field(600, env="CACHE_SWEEP_SECONDS")
    photo_fetch_workers: int = Field(8, env="PHOTO_FETCH_WORKERS")
    small_photo_width: int = Field(800, env="SMALL_PHOTO_WIDTH")
    small_photo_height: int = Field(600, env="SMALL_PHOTO_HEIGHT")

    jwt_algorithm: str = Field("RS256", env="JWT_ALGORITHM")
    rsa_private_key: Optional[str] = Field(None, env="RSA_PRIVATE_KEY")
    rsa_public_key: Optional[str] = Field(None, env="RSA_PUBLIC_KEY")
    jwt_secret: Optional[str] = Field(None, env="JWT_SECRET")
    session_ttl_seconds: int = Field(86400, env="SESSION_TTL_SECONDS")
    session_cookie_name: str = Field("mode_session", env="SESSION_COOKIE_NAME")

    app_title: str = Field("Photo Gallery", env="APP_TITLE")
    log_level: str = Field("INFO", env="LOG_LEVEL")

    class Config:
        env_file = ".env"
        extra = "allow"  # tolerate unknown vars if needed

    @model_validator(mode="after")
    def check_cache_windows(self):
        if self.cache_ttl_seconds >= self.presign_expire_seconds:
            raise ValueError("cache_ttl_seconds must be shorter than presign_expire_seconds")
        if self.cache_sweep_seconds < self.cache_ttl_seconds:
            raise ValueError("cache_sweep_seconds must not be shorter than cache_ttl_seconds")
        return self

    def storage_config(self) -> StorageConfig:
        return StorageConfig(
            bucket=self.s3_bucket,
            region=self.aws_region,
            endpoint_url=self.aws_endpoint_url,
            public_endpoint_url=self.public_endpoint_url,
            access_key_id=self.aws_access_key_id,
            secret_access_key=self.aws_secret_access_key,
        )

settings = Settings()
