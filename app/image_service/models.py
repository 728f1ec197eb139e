from typing import NamedTuple, Optional
from datetime import datetime
from pydantic import BaseModel

LAST_N = "lastN"
LAST_ONE = "last1"

def namespace_prefix(user_id: str) -> str:
    """Object key prefix grouping every object owned by a user."""
    return f"user_{user_id}/"

class ObjectDescriptor(BaseModel):
    key: str
    size: int
    modified_at: datetime

class ImageRecord(BaseModel):
    key: str
    size: int
    modified_at: datetime
    url: Optional[str] = None

    model_config = {"frozen": True}

class CacheKey(NamedTuple):
    kind: str
    user_id: str
    count: int
