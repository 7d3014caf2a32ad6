from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from .types import Credentials, FragmentMeta


class FragmentRegistry:
    """Session cache of fragment metadata, derived from the last successful list.

    Contents are only ever swapped wholesale by ``replace_all``; readers get
    an immutable snapshot, so they never observe a half-applied refresh.
    """

    def __init__(self) -> None:
        self._entries: tuple[FragmentMeta, ...] = ()
        self._index: dict[str, FragmentMeta] = {}
        self.generation = 0

    def replace_all(self, fragments: Iterable[FragmentMeta]) -> None:
        entries = tuple(fragments)
        index = {meta.id: meta for meta in entries}
        self._entries, self._index = entries, index
        self.generation += 1

    def find(self, fragment_id: str) -> FragmentMeta | None:
        return self._index.get(fragment_id)

    def snapshot(self) -> tuple[FragmentMeta, ...]:
        return self._entries

    def ids(self) -> list[str]:
        return [meta.id for meta in self._entries]

    def __iter__(self) -> Iterator[FragmentMeta]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fragment_id: object) -> bool:
        return fragment_id in self._index


@dataclass
class Session:
    credentials: Credentials
    registry: FragmentRegistry = field(default_factory=FragmentRegistry)
