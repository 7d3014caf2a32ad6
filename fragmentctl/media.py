from __future__ import annotations

JSON_TYPE = "application/json"
MARKDOWN_TYPE = "text/markdown"

_TEXTUAL_APPLICATION_TYPES = {
    "application/json",
    "application/yaml",
    "application/x-yaml",
    "application/xml",
    "application/javascript",
}


def strip_parameters(content_type: str | None) -> str:
    """``"text/plain; charset=utf-8"`` -> ``"text/plain"``."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_image(content_type: str | None) -> bool:
    return strip_parameters(content_type).startswith("image/")


def is_json(content_type: str | None) -> bool:
    return strip_parameters(content_type) == JSON_TYPE


def is_textual(content_type: str | None) -> bool:
    base = strip_parameters(content_type)
    if base.startswith("image/"):
        return False
    if base.startswith("text/"):
        return True
    if base in _TEXTUAL_APPLICATION_TYPES:
        return True
    return base.endswith("+json") or base.endswith("+xml")


def available_conversions(content_type: str | None) -> tuple[str, ...]:
    """Conversion extensions offered for a resolved content type."""
    base = strip_parameters(content_type)
    if base == MARKDOWN_TYPE:
        return ("html",)
    if base.startswith("image/"):
        return ("jpg",)
    return ()
