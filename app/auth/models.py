from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field
from uuid import uuid4

def new_user_id() -> str:
    """Generates a new unique user ID."""
    return str(uuid4())

class User(BaseModel):
    user_id: str = Field(default_factory=new_user_id)
    email: str
    name: Optional[str] = None
    password_hash: str
    created_at: datetime

class SignUpRequest(BaseModel):
    email: str = ""
    password: str = ""
    name: Optional[str] = None

class SignInRequest(BaseModel):
    email: str = ""
    password: str = ""

class UserResponse(BaseModel):
    user_id: str
    email: str
    name: Optional[str] = None

class MessageResponse(BaseModel):
    message: str
