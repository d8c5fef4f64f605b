from __future__ import annotations

from typing import BinaryIO

from .binio import pack_cstring, pack_properties
from .catalog import Catalog
from .hashutil import ChecksumWriter


def write_catalog(f: BinaryIO, catalog: Catalog) -> bytes:
    """Emit header records, then payloads, then the trailing digest.

    The catalog must already end with its sentinel. Returns the digest.
    """
    out = ChecksumWriter(f)
    # Pass 1: header records
    for e in catalog:
        out.write(pack_cstring(e.name) + pack_properties(e.properties.as_tuple()))
        if e.is_version:
            for s in e.extension:
                out.write(pack_cstring(s))
            out.write(b"\x00")
    # Pass 2: payloads, in record order
    for e in catalog.files():
        out.write(e.payload or b"")
    return out.finalize()
