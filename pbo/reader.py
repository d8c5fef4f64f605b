from __future__ import annotations

from typing import BinaryIO, Tuple

from .binio import read_cstring, read_exact, read_properties
from .catalog import Catalog, Entry, Properties
from .constants import DIGEST_SIZE
from .errors import ArchiveIOError, MalformedArchiveError, ResourceExhaustedError
from .hashutil import digest_stream


def parse_header(f: BinaryIO) -> Tuple[Catalog, int]:
    """
    Parses the record table at the start of ``f``.

    Each record is a NUL-terminated name followed by a 20-byte property
    block. An empty name on record 0 marks the version entry, whose
    property block is followed by extension strings up to an empty string.
    An empty name on any later record is the sentinel and ends the header.

    Returns:
        The populated catalog and the header size in bytes; payload offsets
        are relative to that boundary.
    """
    catalog = Catalog()
    file_offset = 0
    try:
        index = 0
        while True:
            name = read_cstring(f)
            props = Properties.from_tuple(read_properties(f))
            entry = Entry(name=name, properties=props, file_offset=file_offset)
            file_offset += props.data_size
            if not name and index == 0:
                entry.extension = []
                while True:
                    s = read_cstring(f)
                    if not s:
                        break
                    entry.extension.append(s)
            catalog.append(entry)
            if not name and index > 0:
                break
            index += 1
        header_size = f.tell()
    except MemoryError as exc:
        catalog.clear()
        raise ResourceExhaustedError("Out of memory while parsing archive header") from exc
    except MalformedArchiveError:
        catalog.clear()
        raise
    return catalog, header_size


def read_header(path: str) -> Tuple[Catalog, int]:
    try:
        with open(path, "rb") as f:
            return parse_header(f)
    except OSError as exc:
        raise ArchiveIOError(f"Cannot read archive {path}: {exc}") from exc


def read_payload(path: str, header_size: int, entry: Entry) -> bytes:
    """Read one entry's payload; the archive is reopened on every call."""
    try:
        with open(path, "rb") as f:
            f.seek(header_size + entry.file_offset)
            return read_exact(f, entry.data_size)
    except OSError as exc:
        raise ArchiveIOError(f"Cannot read {entry.name!r} from {path}: {exc}") from exc


def read_payload_into(path: str, header_size: int, entry: Entry, buf) -> int:
    size = entry.data_size
    view = memoryview(buf).cast("B")
    try:
        with open(path, "rb") as f:
            f.seek(header_size + entry.file_offset)
            n = f.readinto(view[:size])
    except OSError as exc:
        raise ArchiveIOError(f"Cannot read {entry.name!r} from {path}: {exc}") from exc
    if n != size:
        raise MalformedArchiveError(f"Unexpected EOF in payload of {entry.name!r}: wanted {size} bytes, got {n}")
    return n


def verify_checksum(path: str, catalog: Catalog, header_size: int) -> bool:
    """Recompute the SHA-1 over header and data and compare with the trailer.

    The trailer is either the bare digest or a NUL byte followed by it.
    """
    body_len = header_size + sum(e.data_size for e in catalog)
    try:
        with open(path, "rb") as f:
            digest = digest_stream(f, body_len)
            if f.tell() != body_len:
                return False
            trailer = f.read(DIGEST_SIZE + 2)
    except OSError as exc:
        raise ArchiveIOError(f"Cannot read archive {path}: {exc}") from exc
    return trailer in (digest, b"\x00" + digest)
