from __future__ import annotations

import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path
from typing import Dict

from pbo.archive import Archive


def _build_fixture_tree(root: Path) -> Dict[str, bytes]:
    files: Dict[str, bytes] = {}
    (root / "data").mkdir()
    (root / "data" / "textures").mkdir()
    content = b"class CfgPatches {};\n" * 20
    (root / "config.cpp").write_bytes(content)
    files["config.cpp"] = content

    bin_data = os.urandom(2048)
    (root / "data" / "textures" / "ground.paa").write_bytes(bin_data)
    files["data/textures/ground.paa"] = bin_data

    (root / "data" / "empty.txt").write_bytes(b"")
    files["data/empty.txt"] = b""
    return files


def _compare_trees(src: Path, dst: Path):
    for root_src, _dirs, files_src in os.walk(src):
        rel = os.path.relpath(root_src, src)
        root_dst = dst / rel if rel != "." else dst
        assert root_dst.is_dir(), f"Missing directory: {root_dst}"
        for fname in files_src:
            sdata = (Path(root_src) / fname).read_bytes()
            ddata = (root_dst / fname).read_bytes()
            assert sdata == ddata, f"File contents differ: {root_dst / fname}"


class CLIIntegrationTests(unittest.TestCase):
    def run_cli(self, args, *, expect: int | None = 0, cwd: Path | None = None):
        cmd = [sys.executable, "-m", "pbo.cli"] + list(args)
        env = os.environ.copy()
        repo_root = Path(__file__).resolve().parent
        existing = env.get("PYTHONPATH", "")
        env["PYTHONPATH"] = str(repo_root) if not existing else f"{repo_root}{os.pathsep}{existing}"
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=env,
        )
        if expect is not None and proc.returncode != expect:
            raise AssertionError(
                f"CLI exited {proc.returncode}, expected {expect}\nCommand: {' '.join(cmd)}\nSTDOUT:\n{proc.stdout}\nSTDERR:\n{proc.stderr}"
            )
        return proc

    def test_pack_unpack_roundtrip(self):
        tmp_src = tempfile.TemporaryDirectory()
        tmp_workspace = tempfile.TemporaryDirectory()
        self.addCleanup(tmp_src.cleanup)
        self.addCleanup(tmp_workspace.cleanup)

        src_root = Path(tmp_src.name)
        workspace = Path(tmp_workspace.name)
        expected = _build_fixture_tree(src_root)

        archive = workspace / "addon.pbo"
        self.run_cli(["pack", str(archive), str(src_root), "--ext", "prefix", "my\\addon", "--quiet"])

        with Archive(str(archive)) as arc:
            arc.read_header()
            self.assertEqual(arc.extensions, ["prefix", "my\\addon"])
            self.assertIn("data\\textures\\ground.paa", list(arc.names()))
            self.assertEqual(len(list(arc.names())), len(expected))

        verify_proc = self.run_cli(["verify", str(archive)])
        self.assertIn("OK", verify_proc.stdout)

        list_proc = self.run_cli(["list", str(archive)])
        self.assertIn("2048\tdata\\textures\\ground.paa", list_proc.stdout)

        info_proc = self.run_cli(["info", str(archive)])
        self.assertIn("Files: 3", info_proc.stdout)
        self.assertIn("HEntry: prefix", info_proc.stdout)

        extract_dir = workspace / "extract"
        extract_dir.mkdir()
        self.run_cli(["unpack", str(archive), "--outdir", str(extract_dir)])
        _compare_trees(src_root, extract_dir)

    def test_reproducible_pack(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            src = root / "src"
            src.mkdir()
            _build_fixture_tree(src)
            a = root / "a.pbo"
            b = root / "b.pbo"
            self.run_cli(["pack", str(a), str(src), "--timestamp", "1000", "--quiet"])
            self.run_cli(["pack", str(b), str(src), "--timestamp", "1000", "--quiet"])
            self.assertEqual(a.read_bytes(), b.read_bytes())

    def test_unpack_selected_paths_and_exists_policies(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            src = root / "src"
            src.mkdir()
            _build_fixture_tree(src)
            archive = root / "arc.pbo"
            self.run_cli(["pack", str(archive), str(src), "--quiet"])

            only = root / "only"
            only.mkdir()
            self.run_cli(["unpack", str(archive), "data/textures", "--outdir", str(only)])
            self.assertTrue((only / "data" / "textures" / "ground.paa").exists())
            self.assertFalse((only / "config.cpp").exists())

            out = root / "out"
            out.mkdir()
            (out / "config.cpp").write_text("beta")
            skip_proc = self.run_cli(["unpack", str(archive), "--outdir", str(out), "--exists", "skip"])
            self.assertIn("skipping: config.cpp", skip_proc.stdout)
            self.assertEqual((out / "config.cpp").read_text(), "beta")

            self.run_cli(["unpack", str(archive), "--outdir", str(out), "--exists", "fail"], expect=2)

            self.run_cli(["unpack", str(archive), "--outdir", str(out), "--exists", "overwrite"])
            self.assertEqual((out / "config.cpp").read_bytes(), (src / "config.cpp").read_bytes())

    def test_errors(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            bad = root / "bad.pbo"
            bad.write_bytes(b"not a pbo")
            proc = self.run_cli(["list", str(bad)], expect=2)
            self.assertIn("not a valid PBO archive", proc.stderr)
            self.run_cli(["list", str(root / "missing.pbo")], expect=2)

            src = root / "src"
            src.mkdir()
            (src / "a.txt").write_bytes(b"payload")
            archive = root / "arc.pbo"
            self.run_cli(["pack", str(archive), str(src), "--quiet"])
            raw = bytearray(archive.read_bytes())
            raw[-21] ^= 0xFF
            archive.write_bytes(bytes(raw))
            proc = self.run_cli(["verify", str(archive)], expect=1)
            self.assertIn("FAILED", proc.stdout)


if __name__ == "__main__":
    unittest.main()
