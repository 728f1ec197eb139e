from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import uvicorn
import logging

from app.storage.dynamodb import UserRepository
from app.storage.s3 import S3Service
from app.auth.credentials import CredentialService
from app.image_service.cache import ResultCache
from app.image_service.service import PhotoFetchService
from app.settings import settings
from app.routers.auth import router as auth_router
from app.routers.photos import router as photos_router
from app.exceptions import add_exception_handlers
from app.middleware import LoggingMiddleware

logging.basicConfig(level=settings.log_level)
log = logging.getLogger("photo-gallery")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
        Async context manager for FastAPI application lifecycle events.
        Builds the credential service, storage clients and photo cache, and
        tears them down on shutdown. Bad key material aborts startup.
    """
    app.state.credentials = CredentialService.from_settings(settings)
    storage_config = settings.storage_config()
    app.state.s3 = S3Service(storage_config)
    app.state.db = UserRepository(storage_config, settings.users_table)

    cache = ResultCache(ttl=settings.cache_ttl_seconds, sweep_interval=settings.cache_sweep_seconds)
    cache.start()
    app.state.photos = PhotoFetchService(
        app.state.s3,
        cache,
        presign_ttl=settings.presign_expire_seconds,
        max_workers=settings.photo_fetch_workers,
    )
    log.info("Photo gallery started")
    yield
    # Cleanup resources
    cache.stop()
    app.state.photos.close()
    app.state.s3.close()
    app.state.db.close()

# Initialize App
app = FastAPI(
    title=settings.app_title,
    lifespan=lifespan,
    description="Photo Gallery Service",
)

# Add exception handlers
add_exception_handlers(app)

# Middleware
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add the routers
app.include_router(auth_router)
app.include_router(photos_router)

# Check Health
@app.get("/")
def read_root():
    """
        Default end point
    """
    return "Photo Gallery Service is running."

if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8080, reload=True)
