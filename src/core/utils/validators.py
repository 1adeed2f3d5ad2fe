"""Request validation utilities."""

import re
import unicodedata
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from core.utils.constants import TAG_MAX_LENGTH
from core.utils.response import ResponseBuilder

ModelT = TypeVar("ModelT", bound=BaseModel)

MOBILE_USER_AGENT_PATTERN = re.compile(
    r"mobile|android|iphone|ipod|ipad|blackberry|iemobile|opera mini|webos",
    re.IGNORECASE,
)


def sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Sanitize Pydantic validation errors for API responses.

    Removes sensitive/internal fields like:
    - url
    - ctx
    - input
    - internal exception details
    """
    sanitized: list[dict[str, str]] = []

    for err in errors:
        field = ".".join(str(x) for x in err.get("loc", [])) or "body"
        raw_msg = err.get("msg", "Invalid value")

        # Remove noisy prefixes
        msg = raw_msg.replace("Value error,", "").strip()

        # Friendly rewrites for common cases
        msg_lower = msg.lower()
        if "base64" in msg_lower:
            msg = "File must be a valid Base64-encoded string"
        elif "field required" in msg_lower:
            msg = "This field is required"
        elif "type" in msg_lower:
            msg = "Invalid value type"

        sanitized.append(
            {
                "field": field,
                "message": msg,
            }
        )

    return sanitized


def validate_request(
    model: type[ModelT],
    data: dict[str, Any],
    *,
    request_id: str | None = None,
    cors_origin: str | None = None,
) -> tuple[bool, ModelT | dict[str, Any]]:
    """Validate request data against a Pydantic model.

    Args:
        model: Pydantic model class
        data: Input data to validate
        request_id: Optional request ID for tracing
        cors_origin: Optional CORS origin

    Returns:
        (True, validated_model) on success
        (False, error_response) on validation failure
    """
    try:
        validated = model(**data)
        return True, validated

    except ValidationError as exc:
        sanitized_errors = sanitize_validation_errors(exc.errors())
        return (
            False,
            ResponseBuilder.validation_error(
                message="Invalid request payload",
                details={"errors": sanitized_errors},
                request_id=request_id,
                cors_origin=cors_origin,
            ),
        )


def sanitize_tag_name(name: Any) -> str:
    """Normalize a tag name for storage.

    Control characters are dropped, surrounding whitespace trimmed and the
    result truncated to ``TAG_MAX_LENGTH``. Case is preserved; an empty
    string means the name is unusable.
    """
    if name is None:
        return ""

    text = "".join(ch for ch in str(name) if unicodedata.category(ch) != "Cc")
    return text.strip()[:TAG_MAX_LENGTH].strip()


def parse_tags(value: Any) -> list[str]:
    """Parse a comma-separated string or list into sanitized, unique tag names."""
    if value is None:
        return []

    if isinstance(value, str):
        raw_tags: list[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        raw_tags = list(value)
    else:
        raise ValueError("tags must be a string or list of strings")

    # remove empty + deduplicate while preserving order
    return list(dict.fromkeys(tag for tag in map(sanitize_tag_name, raw_tags) if tag))


def is_mobile_device(user_agent: str | None) -> bool:
    if not user_agent:
        return False
    return bool(MOBILE_USER_AGENT_PATTERN.search(user_agent))
