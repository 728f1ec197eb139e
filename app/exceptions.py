"""
    Centralized exception handling for the FastAPI application.
"""
from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
import logging

log = logging.getLogger(__name__)

class APIException(Exception):
    """Base class for API exceptions."""
    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.detail)

class TransportError(APIException):
    """Exception for object store listing/download failures."""
    def __init__(self, detail: str):
        super().__init__(status_code=500, detail=detail)

class NoImagesFound(APIException):
    """Exception for a namespace holding no image objects."""
    def __init__(self, prefix: str):
        self.prefix = prefix
        super().__init__(status_code=500, detail=f"no image files found under '{prefix}'")

class PresignError(APIException):
    """Exception for presigned URL generation failures."""
    def __init__(self, detail: str):
        super().__init__(status_code=500, detail=detail)

class DecodeError(APIException):
    """Exception for image payloads that cannot be decoded or resized."""
    def __init__(self, detail: str):
        super().__init__(status_code=500, detail=detail)

class UserStoreException(APIException):
    """Exception for user repository failures."""
    def __init__(self, detail: str):
        super().__init__(status_code=500, detail=detail)

class InvalidRequestException(APIException):
    """Exception for malformed requests."""
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class InvalidCredentialsException(APIException):
    """Exception for a failed sign in."""
    def __init__(self):
        super().__init__(status_code=401, detail="Invalid credentials")

class UnauthorizedException(APIException):
    """Exception for a missing, expired or forged session."""
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status_code=401, detail=detail)

class CredentialConfigError(Exception):
    """Raised at startup when signing key material is missing or unusable."""

async def api_exception_handler(request: Request, exc: APIException):
    """Handles API exceptions."""
    log.error(f"API Exception: {exc.detail}", exc_info=exc)
    return PlainTextResponse(exc.detail, status_code=exc.status_code)

async def http_exception_handler(request: Request, exc: HTTPException):
    """Handles FastAPI HTTP exceptions."""
    log.error(f"HTTP Exception: {exc.detail}", exc_info=exc)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handles request validation errors as bad requests."""
    errors = exc.errors()
    fields = ", ".join(".".join(str(p) for p in e.get("loc", ())[1:]) for e in errors)
    log.warning(f"Validation error on {request.url.path}: {fields}")
    return PlainTextResponse(f"Invalid request parameters: {fields}", status_code=400)

async def generic_exception_handler(request: Request, exc: Exception):
    """Handles all other exceptions."""
    log.error(f"Unhandled Exception: {str(exc)}", exc_info=exc)
    return PlainTextResponse("An unexpected error occurred.", status_code=500)

def add_exception_handlers(app):
    """Adds exception handlers to the FastAPI app."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
