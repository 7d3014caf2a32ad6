from __future__ import annotations

from dataclasses import dataclass

from .types import FragmentMeta


@dataclass(frozen=True, slots=True)
class Content:
    content_type: str
    body: str | bytes


@dataclass(frozen=True, slots=True)
class Stored:
    fragment: FragmentMeta | None
    location: str | None = None


@dataclass(frozen=True, slots=True)
class Deleted:
    fragment_id: str


@dataclass(frozen=True, slots=True)
class NotFound:
    fragment_id: str


@dataclass(frozen=True, slots=True)
class UnsupportedConversion:
    fragment_id: str
    extension: str


@dataclass(frozen=True, slots=True)
class TransportError:
    status: int | None
    reason: str

    def __str__(self) -> str:
        if self.status is None:
            return self.reason
        return f"{self.status} {self.reason}".strip()


ListResult = list[FragmentMeta] | TransportError
RawResult = Content | NotFound | TransportError
ConvertResult = Content | NotFound | UnsupportedConversion | TransportError
StoreResult = Stored | TransportError
DeleteResult = Deleted | NotFound | TransportError
