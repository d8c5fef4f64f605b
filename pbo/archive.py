from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, Iterator, List, Optional, Tuple, Union

from .binio import check_cstring
from .catalog import Catalog, Entry, Properties, version_entry
from .constants import PACKING_STORED, PROPERTY_COUNT, U32_MAX
from .errors import ArchiveIOError, EntryNotFoundError, InvalidStateError
from .reader import read_header, read_payload, read_payload_into, verify_checksum
from .writer import write_catalog


class ArchiveState(enum.Enum):
    EMPTY = "empty"
    EXISTING = "existing"
    NEW = "new"


class ReadStatus(enum.Enum):
    OK = "ok"
    NOT_FOUND = "not-found"
    DOES_NOT_FIT = "does-not-fit"


@dataclass
class _Empty:
    state = ArchiveState.EMPTY


@dataclass
class _Existing:
    catalog: Catalog
    header_size: int
    state = ArchiveState.EXISTING


@dataclass
class _New:
    catalog: Catalog = field(default_factory=Catalog)
    state = ArchiveState.NEW


_Lifecycle = Union[_Empty, _Existing, _New]

ListCallback = Callable[[str, object], None]


class Archive:
    """Handle on one PBO archive path.

    The handle is idle (``EMPTY``) until either ``read_header`` loads an
    existing archive or ``init_new`` starts a new one; ``clear`` returns it
    to idle. The archive file is opened and closed inside each operation.
    Not safe for concurrent use.
    """

    def __init__(self, path: Optional[str] = None):
        self._path = path
        self._lc: _Lifecycle = _Empty()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.dispose()

    # lifecycle

    @property
    def state(self) -> ArchiveState:
        return self._lc.state

    @property
    def path(self) -> Optional[str]:
        return self._path

    def set_path(self, path: str) -> None:
        if not path:
            raise EntryNotFoundError("No archive path given")
        if not isinstance(self._lc, _Empty):
            raise InvalidStateError(f"Cannot rebind path while archive is {self.state.value}")
        self._path = path

    def clear(self) -> None:
        if not isinstance(self._lc, _Empty):
            self._lc.catalog.clear()
        self._lc = _Empty()

    def dispose(self) -> None:
        self.clear()
        self._path = None

    def _require_path(self) -> str:
        if not self._path:
            raise EntryNotFoundError("Archive handle has no path bound")
        return self._path

    def _require(self, kind, action: str):
        if not isinstance(self._lc, kind):
            raise InvalidStateError(f"Cannot {action}: archive is {self.state.value}")
        return self._lc

    def _catalog(self) -> Catalog:
        if isinstance(self._lc, _Empty):
            return Catalog()
        return self._lc.catalog

    # reading

    def read_header(self) -> None:
        self._require(_Empty, "read header")
        catalog, header_size = read_header(self._require_path())
        self._lc = _Existing(catalog=catalog, header_size=header_size)

    @property
    def header_size(self) -> Optional[int]:
        if isinstance(self._lc, _Existing):
            return self._lc.header_size
        return None

    @property
    def entries(self) -> List[Entry]:
        return list(self._catalog())

    @property
    def extensions(self) -> List[str]:
        version = self._catalog().version
        return list(version.extension) if version is not None else []

    def list_files(self, callback: ListCallback, user: object = None) -> None:
        """Call ``callback(name, user)`` for every record, including the empty-named ones."""
        for e in self._catalog():
            callback(e.name, user)

    def names(self) -> Iterator[str]:
        for e in self._catalog().files():
            yield e.name

    def get_file_size(self, name: str) -> Optional[int]:
        e = self._catalog().find(name)
        return e.data_size if e is not None else None

    def read_file(self, name: str, buf) -> Tuple[ReadStatus, int]:
        """Copy an entry's payload into the writable buffer ``buf``.

        ``buf`` is left untouched when the entry is missing or larger than
        ``len(buf)``.
        """
        lc = self._require(_Existing, "read file")
        e = lc.catalog.find(name)
        if e is None:
            return ReadStatus.NOT_FOUND, 0
        if e.data_size > memoryview(buf).nbytes:
            return ReadStatus.DOES_NOT_FIT, 0
        n = read_payload_into(self._require_path(), lc.header_size, e, buf)
        return ReadStatus.OK, n

    def read_bytes(self, name: str) -> Optional[bytes]:
        lc = self._require(_Existing, "read file")
        e = lc.catalog.find(name)
        if e is None:
            return None
        return read_payload(self._require_path(), lc.header_size, e)

    def write_to_file(self, name: str, out: BinaryIO) -> bool:
        data = self.read_bytes(name)
        if data is None:
            return False
        out.write(data)
        return True

    def verify(self) -> bool:
        lc = self._require(_Existing, "verify")
        return verify_checksum(self._require_path(), lc.catalog, lc.header_size)

    # building

    def init_new(self) -> None:
        self._require(_Empty, "start new archive")
        lc = _New()
        lc.catalog.append(version_entry())
        self._lc = lc

    def add_extension(self, value: str) -> None:
        lc = self._require(_New, "add extension")
        check_cstring(value)
        if not value:
            raise ValueError("extension string may not be empty")
        lc.catalog.version.extension.append(value)

    def add_file(self, name: str, data: bytes, *, timestamp: Optional[int] = None) -> Entry:
        lc = self._require(_New, "add file")
        if not name:
            raise ValueError("entry name may not be empty")
        check_cstring(name)
        payload = bytes(data)
        if len(payload) > U32_MAX:
            raise ValueError(f"payload for {name!r} exceeds {U32_MAX} bytes")
        if timestamp is None:
            timestamp = int(time.time())
        props = Properties(
            packing_method=PACKING_STORED,
            original_size=len(payload),
            reserved=0,
            timestamp=timestamp & U32_MAX,
            data_size=len(payload),
        )
        return lc.catalog.append(Entry(name=name, properties=props, payload=payload))

    def add_file_stream(self, name: str, stream: BinaryIO, *, timestamp: Optional[int] = None) -> Entry:
        self._require(_New, "add file")
        return self.add_file(name, stream.read(), timestamp=timestamp)

    def add_file_path(self, name: str, path: str, *, timestamp: Optional[int] = None) -> Entry:
        self._require(_New, "add file")
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as exc:
            raise ArchiveIOError(f"Cannot read {path}: {exc}") from exc
        return self.add_file(name, data, timestamp=timestamp)

    def write(self) -> bytes:
        """Write the archive to the bound path and return the trailing digest.

        The handle stays ``NEW`` afterwards.
        """
        lc = self._require(_New, "write")
        path = self._require_path()
        lc.catalog.ensure_sentinel()
        try:
            with open(path, "wb") as f:
                return write_catalog(f, lc.catalog)
        except OSError as exc:
            raise ArchiveIOError(f"Cannot write archive {path}: {exc}") from exc

    # diagnostics

    def dump_header(self) -> str:
        lines = []
        for i, e in enumerate(self._catalog()):
            lines.append(f"Entry({i}): {e.name}")
            values = e.properties.as_tuple()
            for p in range(PROPERTY_COUNT):
                lines.append(f"\tproperties[{p}] = {values[p]}")
            if e.extension is not None:
                lines.append("\tHeaderExtension:")
                for s in e.extension:
                    lines.append(f"\t\tHEntry: {s}")
        return "\n".join(lines)
