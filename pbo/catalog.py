from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from .constants import PACKING_STORED, PACKING_VERSIONED


@dataclass
class Properties:
    packing_method: int = PACKING_STORED
    original_size: int = 0
    reserved: int = 0
    timestamp: int = 0
    data_size: int = 0

    def as_tuple(self) -> Tuple[int, int, int, int, int]:
        return (self.packing_method, self.original_size, self.reserved, self.timestamp, self.data_size)

    @classmethod
    def from_tuple(cls, values) -> "Properties":
        packing_method, original_size, reserved, timestamp, data_size = values
        return cls(packing_method, original_size, reserved, timestamp, data_size)


@dataclass
class Entry:
    name: str
    properties: Properties = field(default_factory=Properties)
    # Only the version entry (record 0, empty name) carries an extension list
    extension: Optional[List[str]] = None
    # Relative to the end of the header; set once read back from disk
    file_offset: Optional[int] = None
    # Set only for entries added to an archive under construction
    payload: Optional[bytes] = None

    @property
    def data_size(self) -> int:
        return self.properties.data_size

    @property
    def is_version(self) -> bool:
        return self.name == "" and self.extension is not None

    @property
    def is_sentinel(self) -> bool:
        return self.name == "" and self.extension is None


def version_entry() -> Entry:
    return Entry(name="", properties=Properties(packing_method=PACKING_VERSIONED), extension=[])


def sentinel_entry() -> Entry:
    return Entry(name="")


class Catalog:
    """Insertion-ordered archive entries.

    Order is the on-disk record order. Name lookup is a linear scan, O(n)
    per call, and resolves duplicates to the first match.
    """

    def __init__(self):
        self._entries: List[Entry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __getitem__(self, i: int) -> Entry:
        return self._entries[i]

    def append(self, entry: Entry) -> Entry:
        # Keep a trailing sentinel last so a re-written catalog stays well formed
        if self._entries and self._entries[-1].is_sentinel and not entry.is_sentinel:
            self._entries.insert(len(self._entries) - 1, entry)
        else:
            self._entries.append(entry)
        return entry

    def find(self, name: str) -> Optional[Entry]:
        if not name:
            return None
        for e in self._entries:
            if e.name == name:
                return e
        return None

    def ensure_sentinel(self) -> Entry:
        if self._entries and self._entries[-1].is_sentinel:
            return self._entries[-1]
        return self.append(sentinel_entry())

    @property
    def version(self) -> Optional[Entry]:
        if self._entries and self._entries[0].is_version:
            return self._entries[0]
        return None

    def files(self) -> Iterator[Entry]:
        """Entries that carry payload: everything except the version entry and sentinel."""
        for e in self._entries:
            if e.name:
                yield e

    def clear(self) -> None:
        self._entries = []
