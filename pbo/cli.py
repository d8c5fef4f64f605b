from __future__ import annotations

import argparse
import os
import sys
import time
from typing import List, Optional, Sequence, Tuple

from pbo.archive import Archive
from pbo.errors import MalformedArchiveError, PboError
from pbo.pathutil import archive_name, norm_path


def _iter_tree(root: str) -> List[Tuple[str, str]]:
    """Return (archive name, filesystem path) pairs for every file under root, sorted."""
    found: List[Tuple[str, str]] = []
    for dirpath, dirs, files in os.walk(root):
        dirs.sort()
        for fn in sorted(files):
            full = os.path.join(dirpath, fn)
            found.append((archive_name(os.path.relpath(full, root)), full))
    return found


def _open_existing(archive: str) -> Archive:
    arc = Archive(archive)
    try:
        arc.read_header()
    except MalformedArchiveError as exc:
        print(f"Error: {archive} is not a valid PBO archive: {exc}", file=sys.stderr)
        sys.exit(2)
    return arc


def cmd_pack(
    output: str,
    input_dir: str,
    *,
    extensions: Optional[Sequence[Tuple[str, str]]] = None,
    timestamp: Optional[int] = None,
    quiet: bool = False,
) -> bool:
    """Pack every file under a directory into a new archive.

    Args:
        output: Destination .pbo path.
        input_dir: Directory whose contents become the archive entries.
        extensions: Header extension (key, value) pairs, e.g. ("prefix", "x\\y").
        timestamp: Fixed entry timestamp; defaults to the current time.
        quiet: Only print the summary line.
    """
    if not os.path.isdir(input_dir):
        raise FileNotFoundError(f"Input directory not found: {input_dir}")
    t0 = time.time()
    total = 0
    with Archive(output) as arc:
        arc.init_new()
        for key, value in extensions or []:
            arc.add_extension(key)
            arc.add_extension(value)
        files = _iter_tree(input_dir)
        for name, full in files:
            e = arc.add_file_path(name, full, timestamp=timestamp)
            total += e.data_size
            if not quiet:
                print(f" adding: {name}")
        digest = arc.write()
    dt = time.time() - t0
    print(f"Done: {len(files)} files, {total} bytes in {dt:.1f}s; sha1={digest.hex()}")
    return True


def cmd_list(archive: str) -> bool:
    """List archive entries with their data sizes."""
    with _open_existing(archive) as arc:
        for e in arc.entries:
            if e.name:
                print(f"{e.data_size}\t{e.name}")
    return True


def cmd_info(archive: str) -> bool:
    """Show header summary and a dump of every header record."""
    with _open_existing(archive) as arc:
        print(f"Archive: {archive}")
        print(f"  Header size: {arc.header_size}")
        print(f"  Files: {len(list(arc.names()))}")
        print(f"  Data bytes: {sum(e.data_size for e in arc.entries)}")
        exts = arc.extensions
        if exts:
            print("  Extensions:")
            for s in exts:
                print(f"    {s}")
        print(arc.dump_header())
    return True


def cmd_unpack(
    archive: str,
    *,
    outdir: str = ".",
    paths: Optional[List[str]] = None,
    exists: str = "overwrite",
    quiet: bool = False,
) -> bool:
    """Unpack entries into a directory, recreating their path layout."""
    if exists not in ("overwrite", "skip", "fail"):
        raise ValueError(f"Unknown exists policy: {exists}")
    wanted = [norm_path(p) for p in paths or []]
    n_done = 0
    seen = set()

    def _on_entry(name: str, arc: Archive) -> None:
        nonlocal n_done
        if not name or name in seen:
            return
        seen.add(name)
        rel = norm_path(name)
        if wanted and not any(rel == w or rel.startswith(w + "/") for w in wanted):
            return
        dest = os.path.join(outdir, *rel.split("/"))
        if os.path.exists(dest):
            if exists == "skip":
                print(f" skipping: {rel}")
                return
            if exists == "fail":
                raise FileExistsError(f"Destination exists: {dest}")
        os.makedirs(os.path.dirname(dest) or ".", exist_ok=True)
        with open(dest, "wb") as out:
            arc.write_to_file(name, out)
        n_done += 1
        if not quiet:
            print(f" extracting: {rel}")

    with _open_existing(archive) as arc:
        arc.list_files(_on_entry, arc)
    print(f"Done: {n_done} files")
    return True


def cmd_verify(archive: str) -> bool:
    """Check the trailing SHA-1 against the archive contents."""
    with _open_existing(archive) as arc:
        ok = arc.verify()
    print("OK" if ok else "FAILED")
    return ok


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="pbo",
        description="PBO archive tool",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_pack = sub.add_parser("pack", help="Pack a directory into a new archive")
    ap_pack.add_argument("output", help="Output .pbo path")
    ap_pack.add_argument("input_dir", help="Directory to pack")
    ap_pack.add_argument(
        "--ext",
        nargs=2,
        action="append",
        metavar=("KEY", "VALUE"),
        default=[],
        help="Header extension pair (repeatable), e.g. --ext prefix my\\addon",
    )
    ap_pack.add_argument("--timestamp", type=int, help="Fixed entry timestamp (seconds since epoch)")
    ap_pack.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_list = sub.add_parser("list", help="List archive contents")
    ap_list.add_argument("archive", help="Archive path")

    ap_info = sub.add_parser("info", help="Show archive header information")
    ap_info.add_argument("archive", help="Archive path")

    ap_unpack = sub.add_parser("unpack", help="Unpack files")
    ap_unpack.add_argument("archive", help="Archive path")
    ap_unpack.add_argument("--outdir", default=".", help="Output directory")
    ap_unpack.add_argument("paths", nargs="*", help="Specific entries or directories to extract")
    ap_unpack.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")
    ap_unpack.add_argument(
        "--exists",
        choices=["overwrite", "skip", "fail"],
        default="overwrite",
        help="What to do if a destination file exists (default: overwrite)",
    )

    ap_verify = sub.add_parser("verify", help="Verify the archive checksum")
    ap_verify.add_argument("archive", help="Archive path")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "pack":
            cmd_pack(args.output, args.input_dir, extensions=args.ext, timestamp=args.timestamp, quiet=args.quiet)
        elif args.cmd == "unpack":
            cmd_unpack(args.archive, outdir=args.outdir, paths=args.paths, exists=args.exists, quiet=args.quiet)
        elif args.cmd == "list":
            cmd_list(args.archive)
        elif args.cmd == "info":
            cmd_info(args.archive)
        elif args.cmd == "verify":
            sys.exit(0 if cmd_verify(args.archive) else 1)
        else:
            raise RuntimeError("Unknown command")
    except (FileNotFoundError, FileExistsError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except (PboError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
