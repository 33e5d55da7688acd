"""Account models for authentication and authorization"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Role(str, Enum):
    """Closed set of roles; every account carries exactly one"""
    ADMIN = "ADMIN"
    USER = "USER"


class Account(BaseModel):
    """Account record owned by the credential store"""

    model_config = ConfigDict(frozen=True)  # Immutable for thread safety

    id: int
    username: str = Field(min_length=4, max_length=50)  # Case-sensitive
    email: EmailStr
    password_hash: str  # bcrypt digest, never the plaintext
    full_name: Optional[str] = Field(default=None, max_length=100)
    is_active: bool = True
    role: Role = Role.USER
