from __future__ import annotations

import os

from .constants import ARCHIVE_SEP


def norm_path(p: str) -> str:
    """Normalize an archive entry name to a relative forward-slash path.

    Rules:
    - Convert backslashes to slashes
    - Strip leading/trailing slashes
    - Remove empty and '.' segments
    - Reject '..' segments
    """
    p = p.replace("\\", "/").strip("/")
    parts = [q for q in p.split("/") if q not in ("", ".")]
    for q in parts:
        if q == "..":
            raise ValueError(f"Path may not contain '..': {p}")
    if not parts:
        raise ValueError("Path is empty after normalization")
    return "/".join(parts)


def archive_name(rel_path: str) -> str:
    """Map a relative filesystem path to an archive entry name (backslash separated)."""
    return ARCHIVE_SEP.join(norm_path(rel_path.replace(os.sep, "/")).split("/"))
