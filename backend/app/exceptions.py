"""
Inkpost API: Custom Exception Hierarchy
=========================================

What:  Application-specific exceptions for every failure the API reports.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers (registered in main.py) translate them into the
       `{message, errors?}` JSON envelope with the matching status code.
Who:   Raised by services, dependencies and policies; caught by the global
       handlers, Celery tasks and the CLI.

Exception Hierarchy:
    InkpostError (base)
    ├── ValidationError          → 422 Unprocessable Entity (field-level errors)
    ├── AuthenticationError      → 401 Unauthorized
    ├── AuthorizationError       → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── DatabaseError            → 500 Internal Server Error
    ├── MailDeliveryError        → task retried by Celery (worker only)
    ├── PermanentJobError        → task fails without retry (worker only)
    ├── QueueUnavailableError    → broker unreachable; logged, or CLI exit 1
    ├── MissingSelectorError     → CLI exit status 1
    └── UserNotFoundError        → CLI exit status 1
"""

from typing import Any, Dict, List, Optional


class InkpostError(Exception):
    """
    Base exception for all Inkpost application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(InkpostError):
    """
    Raised when client input fails validation.

    HTTP: 422 Unprocessable Entity

    `errors` maps each offending field to its list of messages. The top-level
    message is the first field message, suffixed with the number of remaining
    messages:

        {
            "message": "The title field is required. (and 1 more error)",
            "errors": {
                "title": ["The title field is required."],
                "body": ["The body field is required."]
            }
        }
    """

    def __init__(
        self,
        errors: Dict[str, List[str]],
        context: Optional[Dict[str, Any]] = None,
    ):
        self.errors = errors
        super().__init__(message=self.summarize(errors), context=context)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})

    @staticmethod
    def summarize(errors: Dict[str, List[str]]) -> str:
        messages = [m for field_messages in errors.values() for m in field_messages]
        if not messages:
            return "The given data was invalid."
        remaining = len(messages) - 1
        if remaining == 0:
            return messages[0]
        noun = "error" if remaining == 1 else "errors"
        return f"{messages[0]} (and {remaining} more {noun})"


class AuthenticationError(InkpostError):
    """
    Raised when a request carries no usable credentials.

    When:  Missing Authorization header, malformed/unknown token, expired token.
    HTTP:  401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Unauthenticated.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(InkpostError):
    """
    Raised when an authenticated user is not allowed to perform an action.

    When:  A policy check fails (e.g. updating someone else's post).
    HTTP:  403 Forbidden
    """

    def __init__(
        self,
        message: str = "This action is unauthorized.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(InkpostError):
    """
    Raised when a requested resource does not exist.

    When:  GET /api/posts/{id} with an unknown id, a comment that does not
           belong to the post in the path, an unknown user id.
    HTTP:  404 Not Found

    SQLAlchemy returns None for missing rows; services convert that None into
    this exception so routes never deal with it.
    """

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[Any] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message or f"{resource} not found.", context=ctx)


class RateLimitExceededError(InkpostError):
    """
    Raised when a client exceeds a throttle window.

    HTTP:  429 Too Many Requests, with a Retry-After header.
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message="Too Many Attempts.", context=ctx)
        self.retry_after = retry_after


class DatabaseError(InkpostError):
    """
    Raised when a database operation fails unexpectedly.

    HTTP:  500 Internal Server Error. The response body is always generic;
           the detailed error is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MailDeliveryError(InkpostError):
    """
    Raised when the mail transport fails after its retries are exhausted.

    Never reaches HTTP: the welcome-email task lists it in `autoretry_for`,
    so Celery retries the task until its attempts run out.
    """

    def __init__(
        self,
        message: str = "Mail delivery failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MissingSelectorError(InkpostError):
    """Raised by the welcome-email trigger when neither or both of id/email are given."""

    def __init__(self, message: str = "Please provide either --id or --email option."):
        super().__init__(message=message)


class UserNotFoundError(InkpostError):
    """Raised by the welcome-email trigger when the selector matches no user."""

    def __init__(self, field: str, value: Any):
        label = "ID" if field == "id" else field
        super().__init__(
            message=f"No user found with {label} {value}.",
            context={"field": field, "value": str(value)},
        )
        self.field = field
        self.value = value


class PermanentJobError(InkpostError):
    """
    Raised by a background task that must not be retried.

    When:  The task's subject (e.g. the user to welcome) no longer exists.
    Effect: The task ends in FAILURE on its first attempt; it is not in
            `autoretry_for`.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class QueueUnavailableError(InkpostError):
    """Raised when a task message cannot be published to the Celery broker."""

    def __init__(
        self,
        message: str = "The task queue is unavailable.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
