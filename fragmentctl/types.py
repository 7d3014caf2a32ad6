from __future__ import annotations

import base64
from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class Credentials:
    username: str | None = None
    password: str | None = None
    token: str | None = None

    def auth_headers(self) -> dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        if self.username is None or self.password is None:
            return {}
        encoded = base64.b64encode(f"{self.username}:{self.password}".encode()).decode("ascii")
        return {"Authorization": f"Basic {encoded}"}

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, secret=<redacted>)"


@dataclass(slots=True)
class FragmentMeta:
    """Fragment metadata as known to the client.

    ``type`` is whatever the list endpoint reported (``None`` for bare ids).
    ``exact_type`` is only set once the raw fragment has been fetched and,
    when present, wins over ``type``.
    """

    id: str
    type: str | None = None
    exact_type: str | None = None
    size: int | None = None
    created: str | None = None
    updated: str | None = None

    @property
    def resolved(self) -> bool:
        return self.exact_type is not None

    @property
    def effective_type(self) -> str | None:
        return self.exact_type or self.type

    @property
    def display_type(self) -> str:
        return self.effective_type or "unknown"

    def label(self) -> str:
        return f"{self.id} ({self.display_type})"

    def copy(self) -> FragmentMeta:
        return replace(self)


@dataclass(frozen=True, slots=True)
class BareId:
    id: str


@dataclass(frozen=True, slots=True)
class FullMetadata:
    id: str
    type: str | None
    size: int | None = None
    created: str | None = None
    updated: str | None = None


ListingEntry = BareId | FullMetadata


def parse_listing_entry(raw: object) -> ListingEntry | None:
    if isinstance(raw, str):
        return BareId(raw) if raw else None
    if not isinstance(raw, dict):
        return None
    fragment_id = raw.get("id")
    if not isinstance(fragment_id, str) or not fragment_id:
        return None
    content_type = raw.get("type")
    size = raw.get("size")
    return FullMetadata(
        id=fragment_id,
        type=content_type if isinstance(content_type, str) and content_type else None,
        size=size if isinstance(size, int) and not isinstance(size, bool) else None,
        created=_optional_str(raw.get("created")),
        updated=_optional_str(raw.get("updated")),
    )


def to_meta(entry: ListingEntry) -> FragmentMeta:
    if isinstance(entry, BareId):
        return FragmentMeta(id=entry.id)
    return FragmentMeta(
        id=entry.id,
        type=entry.type,
        size=entry.size,
        created=entry.created,
        updated=entry.updated,
    )


def normalize_listing(payload: object) -> list[FragmentMeta] | None:
    """Turn a ``{"fragments": [...]}`` payload into metadata, or ``None`` if malformed."""
    if not isinstance(payload, dict):
        return None
    fragments = payload.get("fragments")
    if not isinstance(fragments, list):
        return None
    metas: list[FragmentMeta] = []
    for raw in fragments:
        entry = parse_listing_entry(raw)
        if entry is not None:
            metas.append(to_meta(entry))
    return metas


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None
