"""
pbo: reader/writer for PBO container archives.

Features:

- Header record table (NUL-terminated names, 20-byte property blocks) with an
  optional version entry carrying header extension strings.
- Two-pass writer (header, then payloads) with a trailing SHA-1 over both.
- Random-access extraction by entry name; the archive is reopened per read.
- CLI to pack a directory, list, inspect, verify, and unpack archives.

Payloads are stored as-is; the packing-method field is carried through but
never interpreted.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "archive",
    "catalog",
    "reader",
    "writer",
    "errors",
]

# Programmatic API is pbo.archive.Archive; the CLI functions in pbo.cli
# (cmd_pack/cmd_unpack) take normal parameters.
