"""
Inkpost API: Authentication Schemas
=====================================

What:  Request bodies for register/login and the token response.
How:   Same validation path as the post schemas: failures surface as a 422
       with per-field messages. Email uniqueness is checked against the
       database by AuthService after these models pass.

Passwords are never trimmed; a password with surrounding spaces is a
different password. Name and email are trimmed.
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

EMAIL_MAX_LENGTH = 255


def _strip_or_missing(v):
    if isinstance(v, str):
        v = v.strip()
        if not v:
            raise PydanticCustomError("missing", "Field required")
    return v


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    # Declared before `password` so the password validator can compare against it
    password_confirmation: Optional[str] = Field(default=None)
    password: str = Field(min_length=8)

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip_or_missing(v)

    @field_validator("email")
    @classmethod
    def email_length(cls, v: str) -> str:
        if len(v) > EMAIL_MAX_LENGTH:
            raise PydanticCustomError(
                "string_too_long",
                "String should have at most {max_length} characters",
                {"max_length": EMAIL_MAX_LENGTH},
            )
        return v

    @field_validator("password")
    @classmethod
    def password_confirmed(cls, v: str, info: ValidationInfo) -> str:
        if info.data.get("password_confirmation") != v:
            raise PydanticCustomError("confirmed", "Password confirmation does not match")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return _strip_or_missing(v)


class TokenResponse(BaseModel):
    """Returned by register (201) and login (200)."""
    access_token: str = Field(description="Bearer token in the form '<id>|<secret>'")
    token_type: str = Field(default="Bearer")
