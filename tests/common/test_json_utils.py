"""Tests for snowprice/common/json_utils.py"""

import pytest

from snowprice.common.json_utils import read_json, write_json_atomic


class TestReadJson:
    def test_missing_file_returns_default(self, tmp_path):
        assert read_json(tmp_path / "missing.json", default={}) == {}

    def test_corrupt_file_returns_default(self, tmp_path, caplog):
        path = tmp_path / "broken.json"
        path.write_text('{"products": [', encoding="utf-8")
        assert read_json(path, default={"empty": True}) == {"empty": True}
        assert "Could not read" in caplog.text


class TestWriteJsonAtomic:
    def test_round_trip_keeps_unicode(self, tmp_path):
        path = tmp_path / "doc.json"
        write_json_atomic(path, {"name": "スノーボード", "price": 60000})
        assert read_json(path) == {"name": "スノーボード", "price": 60000}
        assert "スノーボード" in path.read_text(encoding="utf-8")

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "data" / "nested" / "doc.json"
        write_json_atomic(path, [1, 2])
        assert read_json(path) == [1, 2]

    def test_replaces_whole_document(self, tmp_path):
        path = tmp_path / "doc.json"
        write_json_atomic(path, {"a": 1, "b": 2})
        write_json_atomic(path, {"a": 3})
        assert read_json(path) == {"a": 3}

    def test_failed_write_keeps_old_file(self, tmp_path):
        path = tmp_path / "doc.json"
        write_json_atomic(path, {"a": 1})
        with pytest.raises(TypeError):
            write_json_atomic(path, {"a": object()})
        assert read_json(path) == {"a": 1}
        assert [p.name for p in tmp_path.iterdir()] == ["doc.json"]
