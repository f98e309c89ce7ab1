"""Tests for config loading and validation."""

import json

import pytest
import yaml

from saved_pages.config import load_config, validate_config


class TestLoadConfig:
    def test_defaults(self):
        config = load_config(config_dict={})
        assert config.api.page_size == 50
        assert config.api.sort == "newest"
        assert config.cache.key_prefix == "savedPages_cache"
        assert config.cache.ttl_ms == 300_000
        assert config.cache.backend == "sqlite"
        assert config.search.debounce_ms == 300
        assert config.scroll.root_margin_px == 200
        assert config.refresh.enabled
        assert config.refresh.delay_ms == 500
        assert config.log_level == "WARNING"

    def test_storage_root_moves_cache_paths(self):
        config = load_config(config_dict={"storage_root": "/tmp/sp"})
        assert config.cache.sqlite_path == "/tmp/sp/cache.db"
        assert config.cache.root == "/tmp/sp/cache"

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "saved-pages.yaml"
        path.write_text(yaml.dump({
            "api": {"base_url": "https://pages.example.com/api", "page_size": 20},
            "cache": {"backend": "memory", "ttl_ms": 60000},
            "search": {"debounce_ms": 150},
            "log_level": "debug",
        }))
        config = load_config(config_path=str(path))
        assert config.api.base_url == "https://pages.example.com/api"
        assert config.api.page_size == 20
        assert config.cache.backend == "memory"
        assert config.cache.ttl_ms == 60000
        assert config.search.debounce_ms == 150
        assert config.log_level == "DEBUG"

    def test_quoted_numbers_from_yaml(self, tmp_path):
        path = tmp_path / "saved-pages.yaml"
        path.write_text(
            'api:\n  page_size: "20"\n'
            'cache:\n  ttl_ms: "60000"\n'
            'search:\n  debounce_ms: "150"\n'
            'scroll:\n  root_margin_px: "100"\n'
            'refresh:\n  delay_ms: "250"\n'
        )
        config = load_config(config_path=path)
        assert config.api.page_size == 20
        assert config.cache.ttl_ms == 60000
        assert config.search.debounce_ms == 150
        assert config.scroll.root_margin_px == 100
        assert config.refresh.delay_ms == 250

    def test_from_json(self, tmp_path):
        path = tmp_path / "saved-pages.json"
        path.write_text(json.dumps({"refresh": {"enabled": False}}))
        config = load_config(config_path=path)
        assert not config.refresh.enabled

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "saved-pages.yaml"
        path.write_text("")
        assert load_config(config_path=path).api.page_size == 50

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nope.yaml")

    def test_discovery(self, tmp_path, monkeypatch):
        (tmp_path / "saved-pages.yml").write_text("api:\n  page_size: 10\n")
        sub = tmp_path / "a" / "b"
        sub.mkdir(parents=True)
        monkeypatch.chdir(sub)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert load_config().api.page_size == 10


class TestValidateConfig:
    def test_valid(self):
        assert validate_config(load_config(config_dict={})) == []

    @pytest.mark.parametrize("raw,fragment", [
        ({"api": {"base_url": "ftp://x"}}, "base_url"),
        ({"api": {"page_size": 0}}, "page_size"),
        ({"api": {"timeout": 0}}, "timeout"),
        ({"cache": {"ttl_ms": 0}}, "ttl_ms"),
        ({"cache": {"backend": "redis"}}, "Unknown cache backend"),
        ({"cache": {"key_prefix": ""}}, "key_prefix"),
        ({"search": {"debounce_ms": -1}}, "debounce_ms"),
        ({"scroll": {"root_margin_px": -5}}, "root_margin_px"),
        ({"refresh": {"delay_ms": -1}}, "delay_ms"),
    ])
    def test_errors(self, raw, fragment):
        errors = validate_config(load_config(config_dict=raw))
        assert len(errors) == 1
        assert fragment in errors[0]

    def test_quoted_out_of_range_values_reported(self):
        raw = {"api": {"page_size": "0"}, "search": {"debounce_ms": "-1"}}
        errors = validate_config(load_config(config_dict=raw))
        assert len(errors) == 2
        assert "page_size" in errors[0]
        assert "debounce_ms" in errors[1]
