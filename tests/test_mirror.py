import logging

import pytest

from sitesync.mirror import DirectoryMirror


def make_tree(root):
    (root / "posts" / "2024").mkdir(parents=True)
    (root / "about").mkdir()
    (root / "posts" / "2024" / "a.md").write_text("# A", encoding="utf-8")


def test_mirror_replicates_structure(tmp_path):
    source = tmp_path / "markdown"
    make_tree(source)
    dest = tmp_path / "build"

    created = DirectoryMirror(source, dest).mirror()

    assert (dest / "posts" / "2024").is_dir()
    assert (dest / "about").is_dir()
    assert not (dest / "posts" / "2024" / "a.md").exists()
    assert dest in created
    assert len(created) == 4


def test_mirror_is_idempotent(tmp_path, caplog):
    source = tmp_path / "markdown"
    make_tree(source)
    dest = tmp_path / "build"
    mirror = DirectoryMirror(source, dest)
    mirror.mirror()

    with caplog.at_level(logging.DEBUG, logger="sitesync.mirror"):
        assert mirror.mirror() == []
    assert "directory already exists" in caplog.text


def test_mirror_missing_source_creates_nothing(tmp_path):
    assert DirectoryMirror(tmp_path / "missing", tmp_path / "out").mirror() == []
    assert not (tmp_path / "out").exists()


def test_mirror_fails_when_file_blocks_directory(tmp_path):
    source = tmp_path / "markdown"
    make_tree(source)
    dest = tmp_path / "build"
    dest.mkdir()
    (dest / "about").write_text("not a directory", encoding="utf-8")

    with pytest.raises(OSError):
        DirectoryMirror(source, dest).mirror()
