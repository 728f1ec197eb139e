from fastapi import APIRouter, Depends, Request, Response
import logging

from app.storage.dynamodb import UserRepository
from app.auth.credentials import CredentialService
from app.auth.models import SignUpRequest, SignInRequest, UserResponse, MessageResponse
from app.auth.service import create_user, authenticate, get_user_by_id
from app.dependencies.dependencies import get_user_repository, get_credential_service, get_current_user_id
from app.exceptions import InvalidRequestException, UnauthorizedException
from app.settings import settings

log = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

@router.post("/signup", response_model=MessageResponse, status_code=201)
def sign_up(
    req: SignUpRequest,
    db: UserRepository = Depends(get_user_repository),
):
    """Registers a new user."""
    if not req.email or not req.password:
        raise InvalidRequestException("Email and password are required")

    create_user(db, email=req.email, password=req.password, name=req.name)
    return MessageResponse(message="User created successfully")

@router.post("/signin", response_model=MessageResponse)
def sign_in(
    req: SignInRequest,
    request: Request,
    response: Response,
    db: UserRepository = Depends(get_user_repository),
    credentials: CredentialService = Depends(get_credential_service),
):
    """Checks email/password and starts a cookie session."""
    user = authenticate(db, req.email, req.password)
    token, expires_at = credentials.issue(user.user_id)

    secure = request.url.scheme == "https"
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        expires=expires_at,
        httponly=True,
        secure=secure,
        samesite="lax",
        path="/",
    )
    log.info("Signed in user %s (secure cookie: %s)", user.user_id, secure)
    return MessageResponse(message="Successfully signed in")

@router.get("/user", response_model=UserResponse)
def get_signed_in_user(
    user_id: str = Depends(get_current_user_id),
    db: UserRepository = Depends(get_user_repository),
):
    """Returns the signed-in user."""
    user = get_user_by_id(db, user_id)
    if user is None:
        # Valid session for a user that no longer exists
        raise UnauthorizedException()
    return UserResponse(user_id=user.user_id, email=user.email, name=user.name)
