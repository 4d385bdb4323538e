"""源仓库标识测试"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from fersk.core.identity import hash_bytes, normalize_path, repository_identity


class TestHashBytes:
    def test_known_vector(self) -> None:
        assert hash_bytes(b"abc") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    def test_fixed_length_hex(self) -> None:
        h = hash_bytes(b"/home/user/project")
        assert len(h) == 64
        assert all(c in "0123456789abcdef" for c in h)

    def test_stable(self) -> None:
        assert hash_bytes(b"/a/b") == hash_bytes(b"/a/b")

    def test_distinct_inputs(self) -> None:
        digests = {hash_bytes(f"/repo/{i}".encode()) for i in range(200)}
        assert len(digests) == 200


class TestRepositoryIdentity:
    def test_same_path_same_identity(self, tmp_path: Path) -> None:
        assert repository_identity(tmp_path) == repository_identity(str(tmp_path))

    def test_trailing_separator_ignored(self, tmp_path: Path) -> None:
        assert repository_identity(str(tmp_path) + os.sep) == repository_identity(tmp_path)

    def test_relative_segments_normalized(self, tmp_path: Path) -> None:
        (tmp_path / "a").mkdir()
        assert repository_identity(tmp_path / "a" / "..") == repository_identity(tmp_path)

    def test_symlink_resolved(self, tmp_path: Path) -> None:
        real = tmp_path / "real"
        real.mkdir()
        link = tmp_path / "link"
        try:
            link.symlink_to(real, target_is_directory=True)
        except OSError:
            pytest.skip("不支持符号链接")
        assert normalize_path(link) == normalize_path(real)
        assert repository_identity(link) == repository_identity(real)

    def test_distinct_paths(self, tmp_path: Path) -> None:
        assert repository_identity(tmp_path / "a") != repository_identity(tmp_path / "b")
