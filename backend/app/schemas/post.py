"""
Inkpost API: Post and Comment Request Schemas
===============================================

What:  Pydantic models for the bodies of the post and comment write endpoints.
How:   FastAPI validates the JSON body against these models before the route
       runs. Failures become a RequestValidationError, which the global handler
       turns into a 422 `{message, errors}` response (see schemas/validation.py).
       Checks that need the database (does the category exist?) run in the
       service layer afterwards.

Rules:
    PostCreate   category_id  required, integer
                 title        required, string, at most 255 characters
                 body         required, string
    PostUpdate   same rules, every field optional; an explicit null is rejected
    CommentWrite body         required, string, at most 1000 characters

Strings are trimmed first, so "   " counts as missing.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError


class PostCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    category_id: int = Field(description="Id of an existing category")
    title: str = Field(min_length=1, max_length=255, description="Post title")
    body: str = Field(min_length=1, description="Post body")


class PostUpdate(BaseModel):
    """
    Partial update. Only the fields present in the request are applied; read
    them with `model_dump(exclude_unset=True)`.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    category_id: Optional[int] = Field(default=None, description="Id of an existing category")
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    body: Optional[str] = Field(default=None, min_length=1)

    @field_validator("category_id", "title", "body", mode="before")
    @classmethod
    def reject_null(cls, v, info: ValidationInfo):
        # Defaults skip validation, so this only fires for an explicit null
        if v is None:
            if info.field_name == "category_id":
                raise PydanticCustomError("int_type", "Input should be a valid integer")
            raise PydanticCustomError("string_type", "Input should be a valid string")
        return v


class CommentWrite(BaseModel):
    """Body of both comment create and comment update."""
    model_config = ConfigDict(str_strip_whitespace=True)

    body: str = Field(min_length=1, max_length=1000, description="Comment text")
