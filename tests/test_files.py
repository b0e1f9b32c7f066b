# ABOUTME: Tests for atomic file writes.
from unittest.mock import patch

import pytest

from mcpi.utils.files import atomic_write_text


def test_writes_content(tmp_path):
    path = tmp_path / "nested" / "out.json"
    atomic_write_text(path, '{"a": 1}\n')
    assert path.read_text(encoding="utf-8") == '{"a": 1}\n'


def test_replaces_existing_file(tmp_path):
    path = tmp_path / "out.json"
    path.write_text("old")

    atomic_write_text(path, "new")

    assert path.read_text() == "new"
    assert [p.name for p in tmp_path.iterdir()] == ["out.json"]


def test_failed_replace_keeps_old_file(tmp_path):
    """Test that an interrupted write leaves the previous content and no temp file."""
    path = tmp_path / "out.json"
    path.write_text("old")

    with patch("mcpi.utils.files.os.replace", side_effect=OSError("disk gone")):
        with pytest.raises(OSError):
            atomic_write_text(path, "new")

    assert path.read_text() == "old"
    assert [p.name for p in tmp_path.iterdir()] == ["out.json"]
