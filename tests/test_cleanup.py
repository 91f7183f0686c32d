import os

from ytapi.cleanup import cleanup_downloads, dir_size

MB = 1024 * 1024


def _make_download(base, name, size, mtime):
    directory = base / name
    directory.mkdir()
    (directory / "media.bin").write_bytes(b"\0" * size)
    os.utime(directory, (mtime, mtime))
    return directory


def test_dir_size_counts_nested_files(tmp_path):
    first = b"hello world"
    second = b"abc"
    (tmp_path / "a.txt").write_bytes(first)
    nested = tmp_path / "sub"
    nested.mkdir()
    (nested / "b.txt").write_bytes(second)
    assert dir_size(tmp_path) == len(first) + len(second)


def test_dir_size_of_missing_path_is_zero(tmp_path):
    assert dir_size(tmp_path / "missing") == 0


def test_cleanup_keeps_oldest_until_limit_exceeded(tmp_path):
    old = _make_download(tmp_path, "old", MB, 1_000)
    middle = _make_download(tmp_path, "middle", MB, 2_000)
    new = _make_download(tmp_path, "new", MB, 3_000)
    cleanup_downloads(1, tmp_path)
    assert old.exists()
    assert not middle.exists()
    assert not new.exists()


def test_cleanup_under_limit_removes_nothing(tmp_path):
    dirs = [_make_download(tmp_path, f"d{i}", MB, 1_000 + i) for i in range(3)]
    cleanup_downloads(2048, tmp_path)
    assert all(directory.exists() for directory in dirs)


def test_partial_megabytes_are_not_counted(tmp_path):
    dirs = [_make_download(tmp_path, f"d{i}", MB // 2, 1_000 + i) for i in range(4)]
    cleanup_downloads(0, tmp_path)
    assert all(directory.exists() for directory in dirs)


def test_cleanup_ignores_top_level_files(tmp_path):
    loose = tmp_path / "archive.zip"
    loose.write_bytes(b"\0" * (2 * MB))
    cleanup_downloads(0, tmp_path)
    assert loose.exists()


def test_cleanup_of_missing_directory_is_harmless(tmp_path):
    target = tmp_path / "nothing-here"
    cleanup_downloads(1, target)
    assert not target.exists()