"""
Inkpost API: Validation Error Translation
===========================================

What:  Turns Pydantic/FastAPI validation errors into the `{field: [messages]}`
       map carried by every 422 response.
How:   Each Pydantic error has a `type` (missing, string_too_long, ...) and a
       `loc` path. The type picks a message template, the last part of the
       path names the field. Underscores in field names read as spaces in
       messages, so `category_id` becomes "The category id field ...".

Example:
    [{"type": "missing", "loc": ("body", "title"), ...}]
      → {"title": ["The title field is required."]}

Errors with no field in their path (a body that is a list, a string, or
invalid JSON) are reported under the `payload` key.
"""

from typing import Any, Dict, Iterable, List, Mapping, Tuple

PAYLOAD_FIELD = "payload"
PAYLOAD_MESSAGE = "The request body must be a JSON object."

# First element of a FastAPI error location names where the value came from
_SOURCES = {"body", "query", "path", "header", "cookie"}

_PAYLOAD_TYPES = {"model_attributes_type", "model_type", "dict_type", "json_invalid"}

_INTEGER_TYPES = {"int_type", "int_parsing", "int_from_float", "int_parsing_size"}


def _field_key(loc: Tuple[Any, ...]) -> str:
    # FastAPI always prefixes the request part ("body", "query", ...), so only
    # the first element is a source; a field may itself be named "body"
    path = list(loc)
    if path and path[0] in _SOURCES:
        path = path[1:]
    # Positions inside invalid JSON are integers, not field names
    names = [str(part) for part in path if isinstance(part, str)]
    return ".".join(names)


def _label(key: str) -> str:
    return key.replace("_", " ")


def message_for(error: Mapping[str, Any], key: str) -> str:
    """Message for a single Pydantic error on the field `key`."""
    kind = error.get("type", "")
    ctx = error.get("ctx") or {}
    field = _label(key)

    if kind == "missing":
        return f"The {field} field is required."
    if kind == "string_too_short":
        minimum = ctx.get("min_length", 1)
        if minimum <= 1:
            return f"The {field} field is required."
        return f"The {field} field must be at least {minimum} characters."
    if kind == "string_too_long":
        return f"The {field} field must not be greater than {ctx.get('max_length')} characters."
    if kind == "string_type":
        return f"The {field} field must be a string."
    if kind in _INTEGER_TYPES:
        return f"The {field} field must be an integer."
    if kind == "greater_than_equal":
        return f"The {field} field must be at least {ctx.get('ge')}."
    if kind == "confirmed":
        return f"The {field} field confirmation does not match."
    if kind == "value_error" and "email address" in str(error.get("msg", "")):
        return f"The {field} field must be a valid email address."
    return f"The {field} field is invalid."


def translate_errors(errors: Iterable[Mapping[str, Any]]) -> Dict[str, List[str]]:
    """
    Groups Pydantic errors by field, in the order they were reported.

    A field gets each distinct message once.
    """
    result: Dict[str, List[str]] = {}
    for error in errors:
        key = _field_key(tuple(error.get("loc", ())))
        if not key or error.get("type") in _PAYLOAD_TYPES:
            key, message = PAYLOAD_FIELD, PAYLOAD_MESSAGE
        else:
            message = message_for(error, key)
        messages = result.setdefault(key, [])
        if message not in messages:
            messages.append(message)
    return result
