"""
Pydantic schemas for request validation and response bodies.

Wire names are camelCase (``firstName``, ``lastName``); attributes are
snake_case.  Unknown request keys are ignored.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from auth.password import MAX_PASSWORD_BYTES
from config.settings import config
from database.models import NAME_MAX_LENGTH


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _check_password_bytes(value: str) -> str:
    if len(value.encode()) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


NewPassword = Annotated[
    str,
    Field(min_length=config.password_min_length),
    AfterValidator(_check_password_bytes),
]

# names must fit the users.first_name / last_name columns
Name = Annotated[str, Field(max_length=NAME_MAX_LENGTH)]


# ═══════════════════════════════════════════════════════════════════════════════
# Requests
# ═══════════════════════════════════════════════════════════════════════════════


class SignupRequest(_CamelModel):
    username: EmailStr
    first_name: Name
    last_name: Name
    password: NewPassword


class SigninRequest(_CamelModel):
    username: EmailStr
    password: str


class UpdateRequest(_CamelModel):
    """
    Partial profile update.  Omitted (or null) fields are left untouched.

    The signup minimum length applies to a new password as well.
    """

    password: Optional[NewPassword] = None
    first_name: Optional[Name] = None
    last_name: Optional[Name] = None

    def change_set(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Responses
# ═══════════════════════════════════════════════════════════════════════════════


class SignupResponse(BaseModel):
    message: str
    token: str


class SigninResponse(BaseModel):
    token: str


class MessageResponse(BaseModel):
    message: str


class DirectoryEntry(_CamelModel):
    id: str
    username: str
    first_name: str
    last_name: str


class DirectoryResponse(BaseModel):
    users: List[DirectoryEntry] = Field(default_factory=list)
