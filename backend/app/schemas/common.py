"""
Inkpost API: Response Envelopes and Shared Schemas
====================================================

What:  The JSON wrappers every endpoint responds with.
How:   Generic Pydantic models, parameterized by the resource type, used as
       FastAPI `response_model`s so OpenAPI docs show the real shapes.

Envelope shapes:
    single resource:   {"data": {...}}
    paginated list:    {"data": [...], "links": {...}, "meta": {...}}
    error:             {"message": "...", "errors": {"field": ["..."]}}
"""

from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# ══════════════════════════════════════════════════════════════════════════
# Success Envelopes
# ══════════════════════════════════════════════════════════════════════════


class DataEnvelope(BaseModel, Generic[T]):
    """Wraps a single resource (or an unpaginated list) as `{"data": ...}`."""
    data: T


class PaginationLinks(BaseModel):
    """Absolute URLs of neighbouring pages; null where no such page exists."""
    first: Optional[str] = None
    last: Optional[str] = None
    prev: Optional[str] = None
    next: Optional[str] = None


class PaginationMeta(BaseModel):
    """
    Page position and totals.

    `from` / `to` are the 1-based positions of the first and last item on the
    page, both null for an empty page. `last_page` is at least 1.
    """
    model_config = ConfigDict(populate_by_name=True)

    current_page: int
    from_: Optional[int] = Field(default=None, alias="from")
    last_page: int
    path: str
    per_page: int
    to: Optional[int] = None
    total: int


class PageEnvelope(BaseModel, Generic[T]):
    """Wraps one page of a collection, preserving store order."""
    data: List[T]
    links: PaginationLinks
    meta: PaginationMeta


# ══════════════════════════════════════════════════════════════════════════
# Error / Utility Responses
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standard error body.

    `errors` is present only for 422 responses and maps each field to its
    messages.
    """
    message: str = Field(description="Human-readable error description")
    errors: Optional[Dict[str, List[str]]] = Field(
        default=None, description="Field-level validation messages"
    )


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Service and dependency status returned by GET /health."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    mail: str = Field(description="Mail transport status: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
