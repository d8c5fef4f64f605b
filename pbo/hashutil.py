from __future__ import annotations

from typing import BinaryIO

from Cryptodome.Hash import SHA1

from .constants import COPY_BUFFER_SIZE


def sha1(data: bytes = b""):
    return SHA1.new(data)


class ChecksumWriter:
    """Write-through wrapper that feeds every byte written into one SHA-1.

    ``finalize`` appends the digest to the underlying stream and must be
    called exactly once, after the last body byte.
    """

    def __init__(self, f: BinaryIO):
        self.f = f
        self._hash = sha1()
        self._finalized = False

    def write(self, data: bytes) -> int:
        if self._finalized:
            raise RuntimeError("checksum already finalized")
        self._hash.update(data)
        self.f.write(data)
        return len(data)

    def finalize(self) -> bytes:
        if self._finalized:
            raise RuntimeError("checksum already finalized")
        self._finalized = True
        digest = self._hash.digest()
        self.f.write(digest)
        return digest


def digest_stream(f: BinaryIO, length: int) -> bytes:
    """SHA-1 over the next ``length`` bytes of ``f``; short reads yield a digest of what was read."""
    h = sha1()
    remaining = length
    while remaining > 0:
        chunk = f.read(min(COPY_BUFFER_SIZE, remaining))
        if not chunk:
            break
        h.update(chunk)
        remaining -= len(chunk)
    return h.digest()
