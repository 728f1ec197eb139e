from datetime import datetime, timezone
from typing import Optional
import logging
from botocore.exceptions import BotoCoreError, ClientError

from app.storage.dynamodb import UserRepository
from app.auth.models import User
from app.auth.password import hash_password, verify_password
from app.exceptions import UserStoreException, InvalidCredentialsException

log = logging.getLogger(__name__)

def to_user(item: dict) -> User:
    return User(
        user_id=item["user_id"],
        email=item["email"],
        name=item.get("name"),
        password_hash=item["password_hash"],
        created_at=datetime.fromisoformat(item["created_at"]),
    )

def create_user(db: UserRepository, email: str, password: str, name: Optional[str] = None) -> User:
    """Registers a user with a bcrypt-hashed password."""
    if get_user_by_email(db, email) is not None:
        raise UserStoreException(f"Error creating user: email {email} is already registered")

    user = User(
        email=email,
        name=name,
        password_hash=hash_password(password),
        created_at=datetime.now(timezone.utc),
    )
    item = user.model_dump(exclude_none=True)
    # Dynamo needs created_at as ISO string
    item["created_at"] = item["created_at"].isoformat()
    try:
        db.create_user(item)
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") == "TransactionCanceledException":
            log.warning("Concurrent signup lost the race for %s", email)
            raise UserStoreException(f"Error creating user: email {email} is already registered") from e
        log.error(f"DynamoDB create_user failed: {e}")
        raise UserStoreException(f"Error creating user: {e}") from e
    except BotoCoreError as e:
        log.error(f"DynamoDB create_user failed: {e}")
        raise UserStoreException(f"Error creating user: {e}") from e

    log.info("Created user %s", user.user_id)
    return user

def get_user_by_email(db: UserRepository, email: str) -> Optional[User]:
    try:
        item = db.get_user_by_email(email)
    except (BotoCoreError, ClientError) as e:
        log.error(f"DynamoDB get_user_by_email failed: {e}")
        raise UserStoreException(f"Failed to look up user: {e}") from e
    return to_user(item) if item else None

def get_user_by_id(db: UserRepository, user_id: str) -> Optional[User]:
    try:
        item = db.get_user_by_id(user_id)
    except (BotoCoreError, ClientError) as e:
        log.error(f"DynamoDB get_user_by_id failed: {e}")
        raise UserStoreException(f"Failed to look up user {user_id}: {e}") from e
    return to_user(item) if item else None

def authenticate(db: UserRepository, email: str, password: str) -> User:
    """Returns the user owning these credentials, or raises InvalidCredentialsException."""
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentialsException()
    return user
