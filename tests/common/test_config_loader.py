"""Tests for snowprice/common/config_loader.py"""

from pathlib import Path

import pytest

from snowprice.common.config_loader import (
    Settings,
    get_brands_lowercase_map,
    load_allowed_categories,
    load_builtin_stores,
    load_category_config,
    load_config,
    load_known_brands,
    load_settings,
    load_type_mapping,
)
from snowprice.common.constants import DEFAULT_PRICE_RANGE


class TestGetBrandsLowercaseMap:
    def test_builds_mapping(self, sample_known_brands):
        result = get_brands_lowercase_map(sample_known_brands)
        assert result["burton"] == "Burton"
        assert result["lib tech"] == "Lib Tech"
        assert result["gnu"] == "GNU"

    def test_empty_brands(self):
        assert get_brands_lowercase_map([]) == {}


class TestLoadFromConfigFiles:
    """Tests that load real config YAML files from the repo."""

    def test_known_brands_are_ordered_list(self):
        brands = load_known_brands()
        assert isinstance(brands, list)
        assert "Burton" in brands
        assert brands.index("Lib Tech") < brands.index("Ride")

    def test_category_precedence(self):
        ids = [c['id'] for c in load_category_config()]
        assert ids.index("binding") < ids.index("snowboard")
        assert ids.index("boots") < ids.index("snowboard")

    def test_category_keywords_lowercase(self):
        for category in load_category_config():
            for keyword in category['keywords']:
                assert keyword == keyword.lower()

    def test_allowed_categories(self):
        assert set(load_allowed_categories()) >= {"snowboard", "binding", "boots"}

    def test_type_mapping_keys_lowercase(self):
        mapping = load_type_mapping()
        assert mapping
        assert all(key == key.lower() for key in mapping)

    def test_builtin_stores(self):
        stores = load_builtin_stores()
        assert stores
        for store in stores.values():
            assert store["base_url"].startswith("https://")
            assert store["currency"]

    def test_load_config_missing_file(self):
        with pytest.raises(FileNotFoundError):
            load_config("nonexistent_file.yaml")


class TestConfigDirOverride:
    def test_reads_from_override_dir(self, tmp_path, monkeypatch):
        (tmp_path / "known_brands.yaml").write_text(
            "brands:\n  - Burton\n  - burton\n  - ' Ride '\n", encoding="utf-8"
        )
        monkeypatch.setenv("SNOWPRICE_CONFIG_DIR", str(tmp_path))
        assert load_known_brands() == ["Burton", "Ride"]

    def test_empty_file(self, tmp_path, monkeypatch):
        (tmp_path / "stores.yaml").write_text("", encoding="utf-8")
        monkeypatch.setenv("SNOWPRICE_CONFIG_DIR", str(tmp_path))
        assert load_builtin_stores() == {}


class TestLoadSettings:
    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SNOWPRICE_CONFIG_DIR", str(tmp_path))
        monkeypatch.delenv("SNOWPRICE_DATA_DIR", raising=False)
        monkeypatch.delenv("SNOWPRICE_MAX_WORKERS", raising=False)
        settings = load_settings()
        assert settings.data_dir == Path("data")
        assert settings.max_workers == 4
        assert settings.store_timeout == 600.0

    def test_yaml_values(self, tmp_path, monkeypatch):
        (tmp_path / "settings.yaml").write_text(
            "max_workers: 2\npage_delay: 0.5\nprice_ranges:\n  JPY: {min: 5000, max: 400000}\n",
            encoding="utf-8",
        )
        monkeypatch.setenv("SNOWPRICE_CONFIG_DIR", str(tmp_path))
        monkeypatch.delenv("SNOWPRICE_MAX_WORKERS", raising=False)
        settings = load_settings()
        assert settings.max_workers == 2
        assert settings.page_delay == 0.5
        assert settings.price_range("JPY") == {"min": 5000, "max": 400000}

    def test_environment_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SNOWPRICE_DATA_DIR", str(tmp_path / "catalog"))
        monkeypatch.setenv("SNOWPRICE_MAX_WORKERS", "8")
        settings = load_settings()
        assert settings.data_dir == tmp_path / "catalog"
        assert settings.max_workers == 8

    def test_worker_count_at_least_one(self, monkeypatch):
        monkeypatch.setenv("SNOWPRICE_MAX_WORKERS", "0")
        assert load_settings().max_workers == 1


class TestSettings:
    def test_default_price_range(self):
        assert Settings().price_range("USD") == DEFAULT_PRICE_RANGE
