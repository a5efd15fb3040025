"""Tests for snowprice/classification/overrides.py"""

import json

import pytest

from snowprice.classification import OverrideStore

VALID = ["binding", "boots", "snowboard", "uncategorized"]


class TestLoad:
    def test_missing_file_gives_empty_store(self, tmp_path):
        store = OverrideStore.load(tmp_path / "classifications.json", VALID)
        assert store.manual == {}
        assert store.learned_keywords == {}

    def test_reads_document(self, tmp_path):
        path = tmp_path / "classifications.json"
        path.write_text(json.dumps({
            "manual": {"burton-custom": "snowboard"},
            "learned_keywords": {"binding": ["Cartel"]},
        }), encoding="utf-8")
        store = OverrideStore.load(path, VALID)
        assert store.manual_category("burton-custom") == "snowboard"
        assert store.learned_keywords == {"binding": ["cartel"]}

    def test_corrupt_file_gives_empty_store(self, tmp_path):
        path = tmp_path / "classifications.json"
        path.write_text("{not json", encoding="utf-8")
        assert OverrideStore.load(path, VALID).manual == {}


class TestSetManual:
    def test_set_and_read(self):
        store = OverrideStore(valid_categories=VALID)
        store.set_manual("burton-custom", "boots")
        assert store.manual_category("burton-custom") == "boots"

    def test_unknown_category_rejected(self):
        store = OverrideStore(valid_categories=VALID)
        with pytest.raises(ValueError, match="Unknown category"):
            store.set_manual("burton-custom", "apparel")

    def test_no_validation_without_category_list(self):
        store = OverrideStore()
        store.set_manual("burton-custom", "anything")
        assert store.manual_category("burton-custom") == "anything"


class TestAddLearnedKeyword:
    def test_new_keyword_is_normalized(self):
        store = OverrideStore(valid_categories=VALID)
        assert store.add_learned_keyword("binding", "  Cartel ") is True
        assert store.learned_keywords["binding"] == ["cartel"]

    def test_duplicate_keyword(self):
        store = OverrideStore(valid_categories=VALID)
        store.add_learned_keyword("binding", "cartel")
        assert store.add_learned_keyword("binding", "CARTEL") is False
        assert store.learned_keywords["binding"] == ["cartel"]

    def test_empty_keyword_rejected(self):
        store = OverrideStore(valid_categories=VALID)
        with pytest.raises(ValueError):
            store.add_learned_keyword("binding", "   ")

    def test_unknown_category_rejected(self):
        store = OverrideStore(valid_categories=VALID)
        with pytest.raises(ValueError):
            store.add_learned_keyword("apparel", "jacket")


class TestSave:
    def test_round_trip(self, tmp_path):
        path = tmp_path / "data" / "classifications.json"
        store = OverrideStore(path, VALID)
        store.set_manual("burton-custom", "snowboard")
        store.add_learned_keyword("boots", "photon")
        store.save()

        reloaded = OverrideStore.load(path, VALID)
        assert reloaded.manual == {"burton-custom": "snowboard"}
        assert reloaded.learned_keywords == {"boots": ["photon"]}

    def test_save_without_path(self):
        with pytest.raises(ValueError):
            OverrideStore().save()
