from __future__ import annotations

import struct
from typing import BinaryIO, Tuple

from .constants import MAX_NAME_LEN, NAME_ENCODING, NAME_ERRORS, PROPERTY_COUNT
from .errors import MalformedArchiveError


# packing_method, original_size, reserved, timestamp, data_size
_PROPS_STRUCT = struct.Struct("<5I")

PROPS_SIZE = _PROPS_STRUCT.size


def read_exact(f: BinaryIO, n: int) -> bytes:
    b = f.read(n)
    if len(b) != n:
        raise MalformedArchiveError(f"Unexpected EOF: wanted {n} bytes, got {len(b)}")
    return b


def read_properties(f: BinaryIO) -> Tuple[int, ...]:
    return _PROPS_STRUCT.unpack(read_exact(f, PROPS_SIZE))


def pack_properties(values) -> bytes:
    if len(values) != PROPERTY_COUNT:
        raise ValueError(f"expected {PROPERTY_COUNT} property fields, got {len(values)}")
    return _PROPS_STRUCT.pack(*values)


def read_cstring_bytes(f: BinaryIO, max_len: int = MAX_NAME_LEN) -> bytes:
    """Read bytes up to (and consuming) a NUL terminator.

    The terminator must appear within ``max_len`` bytes, so at most
    ``max_len - 1`` content bytes are accepted.
    """
    buf = bytearray()
    while True:
        c = f.read(1)
        if not c:
            raise MalformedArchiveError("Unexpected EOF inside NUL-terminated string")
        if c == b"\x00":
            return bytes(buf)
        buf += c
        if len(buf) >= max_len:
            raise MalformedArchiveError(f"String not terminated within {max_len} bytes")


def read_cstring(f: BinaryIO, max_len: int = MAX_NAME_LEN) -> str:
    return decode_name(read_cstring_bytes(f, max_len))


def encode_name(s: str) -> bytes:
    return s.encode(NAME_ENCODING, NAME_ERRORS)


def decode_name(b: bytes) -> str:
    return b.decode(NAME_ENCODING, NAME_ERRORS)


def pack_cstring(s: str) -> bytes:
    return encode_name(s) + b"\x00"


def check_cstring(s: str, max_len: int = MAX_NAME_LEN) -> bytes:
    """Validate that ``s`` can be written as a NUL-terminated field and read back."""
    raw = encode_name(s)
    if b"\x00" in raw:
        raise ValueError(f"string may not contain NUL: {s!r}")
    if len(raw) >= max_len:
        raise ValueError(f"string too long ({len(raw)} bytes, max {max_len - 1}): {s[:40]!r}...")
    return raw
