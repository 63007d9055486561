"""校验和单元测试"""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from zdeps.core import checksum
from zdeps.core.exceptions import ChecksumMismatchError


def _write(root: Path, files: dict[str, str]) -> None:
    for rel, content in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")


class TestHashFile:
    def test_matches_sha256(self, tmp_path: Path) -> None:
        f = tmp_path / "a.txt"
        f.write_bytes(b"hello")
        assert checksum.hash_file(f) == hashlib.sha256(b"hello").hexdigest()

    def test_large_file_streamed(self, tmp_path: Path) -> None:
        data = b"x" * (8192 * 3 + 17)
        f = tmp_path / "big.bin"
        f.write_bytes(data)
        assert checksum.hash_file(f) == hashlib.sha256(data).hexdigest()


class TestHashTree:
    FILES = {"build.zig": "b", "src/main.zig": "m", "src/lib/util.zig": "u"}

    def test_known_digest(self, tmp_path: Path) -> None:
        _write(tmp_path, {"a": "1"})
        inner = hashlib.sha256(b"1").hexdigest()
        expected = hashlib.sha256(b"a\0" + inner.encode() + b"\0").hexdigest()
        assert checksum.hash_tree(tmp_path) == expected

    def test_creation_order_independent(self, tmp_path: Path) -> None:
        a, b = tmp_path / "a", tmp_path / "b"
        _write(a, self.FILES)
        _write(b, dict(reversed(list(self.FILES.items()))))
        assert checksum.hash_tree(a) == checksum.hash_tree(b)

    def test_git_dirs_ignored_at_any_depth(self, tmp_path: Path) -> None:
        _write(tmp_path, self.FILES)
        before = checksum.hash_tree(tmp_path)
        _write(tmp_path, {
            ".git/HEAD": "ref",
            "src/.git/config": "x",
            "src/lib/.git": "gitdir: ../../.git/modules/lib",
        })
        assert checksum.hash_tree(tmp_path) == before

    def test_content_change_detected(self, tmp_path: Path) -> None:
        _write(tmp_path, self.FILES)
        before = checksum.hash_tree(tmp_path)
        (tmp_path / "src" / "main.zig").write_text("changed", encoding="utf-8")
        assert checksum.hash_tree(tmp_path) != before

    def test_rename_detected(self, tmp_path: Path) -> None:
        a, b = tmp_path / "a", tmp_path / "b"
        _write(a, {"x.zig": "same"})
        _write(b, {"y.zig": "same"})
        assert checksum.hash_tree(a) != checksum.hash_tree(b)

    def test_symlinks_skipped(self, tmp_path: Path) -> None:
        tree = tmp_path / "tree"
        _write(tree, self.FILES)
        before = checksum.hash_tree(tree)
        outside = tmp_path / "secret.txt"
        outside.write_text("outside", encoding="utf-8")
        (tree / "src" / "link.zig").symlink_to(outside)
        assert checksum.hash_tree(tree) == before

    def test_empty_dir(self, tmp_path: Path) -> None:
        assert checksum.hash_tree(tmp_path) == hashlib.sha256().hexdigest()


class TestVerify:
    def test_file_ok(self, tmp_path: Path) -> None:
        f = tmp_path / "f"
        f.write_text("data", encoding="utf-8")
        checksum.verify(f, checksum.hash_file(f))

    def test_dir_ok(self, tmp_path: Path) -> None:
        _write(tmp_path, {"a/b": "c"})
        checksum.verify(tmp_path, checksum.hash_tree(tmp_path))

    def test_mismatch(self, tmp_path: Path) -> None:
        f = tmp_path / "f"
        f.write_text("data", encoding="utf-8")
        with pytest.raises(ChecksumMismatchError) as exc:
            checksum.verify(f, "0" * 64)
        assert exc.value.expected == "0" * 64
        assert exc.value.actual == checksum.hash_file(f)

    def test_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            checksum.verify(tmp_path / "nope", "0" * 64)
