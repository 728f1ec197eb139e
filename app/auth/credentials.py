"""
    Session credential issuing and verification.

    A CredentialService is built once at startup from settings and injected
    wherever sessions are issued or checked. RS256 (PEM key pair) and HS256
    (shared secret) are alternative configurations of the same service.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Tuple
import logging
import jwt
from cryptography.hazmat.primitives.serialization import load_pem_private_key, load_pem_public_key

from app.settings import Settings
from app.exceptions import CredentialConfigError, InvalidRequestException, UnauthorizedException

log = logging.getLogger(__name__)

RSA_ALGORITHMS = {"RS256", "RS384", "RS512"}
HMAC_ALGORITHMS = {"HS256", "HS384", "HS512"}

@dataclass(frozen=True)
class CredentialService:
    algorithm: str
    signing_key: Any
    verify_key: Any
    ttl: timedelta

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialService":
        algorithm = settings.jwt_algorithm.upper()
        ttl = timedelta(seconds=settings.session_ttl_seconds)

        if algorithm in HMAC_ALGORITHMS:
            if not settings.jwt_secret:
                raise CredentialConfigError("JWT_SECRET environment variable is not set")
            log.info("Session credentials use %s", algorithm)
            return cls(algorithm, settings.jwt_secret, settings.jwt_secret, ttl)

        if algorithm not in RSA_ALGORITHMS:
            raise CredentialConfigError(f"unsupported JWT algorithm: {settings.jwt_algorithm}")
        if not settings.rsa_private_key:
            raise CredentialConfigError("RSA_PRIVATE_KEY environment variable is not set")
        if not settings.rsa_public_key:
            raise CredentialConfigError("RSA_PUBLIC_KEY environment variable is not set")

        # Parse once up front so bad PEM material fails at startup
        try:
            private_key = load_pem_private_key(settings.rsa_private_key.encode(), password=None)
        except (ValueError, TypeError) as e:
            raise CredentialConfigError(f"failed to parse private key: {e}") from e
        try:
            public_key = load_pem_public_key(settings.rsa_public_key.encode())
        except (ValueError, TypeError) as e:
            raise CredentialConfigError(f"failed to parse public key: {e}") from e

        log.info("Session credentials use %s", algorithm)
        return cls(algorithm, private_key, public_key, ttl)

    def issue(self, subject: str) -> Tuple[str, datetime]:
        """Signs a session token for `subject`, returning it with its expiry."""
        expires_at = datetime.now(timezone.utc) + self.ttl
        claims = {"sub": subject, "exp": expires_at}
        token = jwt.encode(claims, self.signing_key, algorithm=self.algorithm)
        return token, expires_at

    def verify(self, token: str) -> str:
        """Returns the token subject. Forged or expired tokens are unauthorized, garbage is a bad request."""
        try:
            claims = jwt.decode(
                token,
                self.verify_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except (jwt.InvalidSignatureError, jwt.ExpiredSignatureError, jwt.InvalidAlgorithmError) as e:
            raise UnauthorizedException() from e
        except jwt.PyJWTError as e:
            log.warning(f"Error parsing token: {e}")
            raise InvalidRequestException("Bad Request") from e
        return claims["sub"]
