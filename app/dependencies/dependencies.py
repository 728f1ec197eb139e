from fastapi import Request
from app.storage.dynamodb import UserRepository
from app.storage.s3 import S3Service
from app.auth.credentials import CredentialService
from app.image_service.service import PhotoFetchService
from app.exceptions import UnauthorizedException
from app.settings import settings

def get_s3_service(request: Request) -> S3Service:
    """Dependency provider for S3Service"""
    return request.app.state.s3

def get_user_repository(request: Request) -> UserRepository:
    """Dependency provider for UserRepository"""
    return request.app.state.db

def get_photo_service(request: Request) -> PhotoFetchService:
    """Dependency provider for PhotoFetchService"""
    return request.app.state.photos

def get_credential_service(request: Request) -> CredentialService:
    """Dependency provider for CredentialService"""
    return request.app.state.credentials

def get_current_user_id(request: Request) -> str:
    """Verifies the session cookie and returns its subject."""
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise UnauthorizedException()
    return get_credential_service(request).verify(token)
