from __future__ import annotations

import json

from .errors import ValidationError
from .media import is_image, is_json, strip_parameters


def _reject_constant(name: str) -> float:
    raise ValidationError(f"content is not valid JSON: {name} is not allowed")


def canonical_json(text: str) -> str:
    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise ValidationError("content is not valid JSON") from exc
    try:
        return json.dumps(
            parsed, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False
        )
    except ValueError as exc:
        # float("1e999") overflows to inf while parsing
        raise ValidationError("content is not valid JSON: number out of range") from exc


def pretty_json(text: str) -> str:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return text
    return json.dumps(parsed, indent=2, ensure_ascii=False)


def _as_text(body: str | bytes) -> str:
    if isinstance(body, str):
        return body
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ValidationError("text content must be valid UTF-8") from exc


def prepare_create_body(content_type: str, body: str | bytes) -> str | bytes:
    """Validate and normalise content for a new fragment.

    Images must be a non-empty binary payload. Text is trimmed and must not
    be empty; JSON must parse and is re-serialised canonically.
    """
    if not strip_parameters(content_type):
        raise ValidationError("content type is required")
    if is_image(content_type):
        if not isinstance(body, (bytes, bytearray)):
            raise ValidationError("image content must be binary")
        if not body:
            raise ValidationError("image content is empty")
        return bytes(body)
    text = _as_text(body).strip()
    if not text:
        raise ValidationError("content is empty")
    if is_json(content_type):
        return canonical_json(text)
    return text


def prepare_update_body(content_type: str, body: str | bytes) -> str:
    if not strip_parameters(content_type):
        raise ValidationError("cannot determine fragment type for update")
    if is_image(content_type):
        raise ValidationError("image fragments cannot be edited")
    text = _as_text(body)
    if is_json(content_type):
        return canonical_json(text)
    return text
