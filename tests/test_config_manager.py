"""
Unit tests for configuration management system.
"""

import pytest
import os
import time
import tempfile
import yaml
import json
from unittest.mock import patch

from keychain_monitor.services.config_manager import ConfigurationManager
from keychain_monitor.models.config import Configuration


class TestConfigurationManager:
    """Test ConfigurationManager functionality."""

    def create_temp_config(self, config_data: dict, file_format: str = "yaml") -> str:
        """Create a temporary configuration file."""
        with tempfile.NamedTemporaryFile(
            mode="w", suffix=f".{file_format}", delete=False, encoding="utf-8"
        ) as f:
            if file_format == "json":
                json.dump(config_data, f, indent=2)
            else:
                yaml.dump(config_data, f, default_flow_style=False)
            return f.name

    def get_valid_config_data(self) -> dict:
        """Get valid configuration data for testing."""
        return {
            "rules": {
                "price_band": {"min": -40, "max": 3},
                "keychain_threshold": 60,
                "enabled_keychains": ["Hot Howl"],
                "target_entries": [
                    {
                        "id": "entry_redline",
                        "keyword": "AK-47 | Redline",
                        "floatFilter": {"enabled": True, "min": 0.15, "max": 0.25},
                    },
                    {"id": "entry_universal", "isUniversal": True},
                ],
            },
            "reference_prices": {
                "sources": [
                    {
                        "name": "tradeit.gg",
                        "url": "https://prices.example.com/tradeit.json",
                        "price_multiplier": 0.925,
                    }
                ],
                "cache_ttl_seconds": 1800,
            },
            "dedup": {"max_notified_ids": 500},
            "history": {"retention_minutes": 90, "window_minutes": 45},
            "system": {"log_level": "DEBUG", "log_dir": "logs"},
        }

    def test_load_valid_yaml_config(self):
        """Test loading valid YAML configuration."""
        config_file = self.create_temp_config(self.get_valid_config_data(), "yaml")

        try:
            manager = ConfigurationManager(config_file)
            config = manager.load_config()

            assert isinstance(config, Configuration)
            assert config.rules.min_above_recommended == -40
            assert config.rules.keychain_threshold == 60
            assert config.rules.enabled_keychains == frozenset({"Hot Howl"})
            assert len(config.rules.target_entries) == 2
            assert config.reference_prices.sources[0].price_multiplier == 0.925
            assert config.reference_prices.cache_ttl_seconds == 1800
            assert config.max_notified_ids == 500
            assert config.history_retention_minutes == 90
            assert config.log_level == "DEBUG"
        finally:
            os.unlink(config_file)

    def test_load_valid_json_config(self):
        """Test loading valid JSON configuration."""
        config_file = self.create_temp_config(self.get_valid_config_data(), "json")

        try:
            manager = ConfigurationManager(config_file)
            config = manager.load_config()

            assert config.rules.target_entries[0].keyword == "AK-47 | Redline"
        finally:
            os.unlink(config_file)

    def test_defaults_for_empty_file(self):
        """Test that an empty file yields the default rules."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            config_file = f.name

        try:
            config = ConfigurationManager(config_file).load_config()

            assert config.rules.min_above_recommended == -50
            assert config.rules.max_above_recommended == 5
            assert config.reference_prices.sources == []
            assert config.max_notified_ids == 1000
        finally:
            os.unlink(config_file)

    def test_environment_variable_expansion(self):
        """Test environment variable expansion in configuration."""
        config_data = self.get_valid_config_data()
        config_data["reference_prices"]["sources"][0]["url"] = "${TEST_PRICES_URL}"
        config_file = self.create_temp_config(config_data, "yaml")

        try:
            with patch.dict(os.environ, {"TEST_PRICES_URL": "https://env.example.com/p.json"}):
                config = ConfigurationManager(config_file).load_config()

                assert config.reference_prices.sources[0].url == "https://env.example.com/p.json"
        finally:
            os.unlink(config_file)

    def test_missing_environment_variable_raises_error(self):
        """Test that missing environment variable raises error."""
        config_data = self.get_valid_config_data()
        config_data["reference_prices"]["sources"][0]["url"] = "${MISSING_VAR}"
        config_file = self.create_temp_config(config_data, "yaml")

        try:
            manager = ConfigurationManager(config_file)
            with pytest.raises(ValueError, match="Environment variable 'MISSING_VAR' not found"):
                manager.load_config()
        finally:
            os.unlink(config_file)

    def test_invalid_yaml_raises_error(self):
        """Test that invalid YAML raises error."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write("invalid: yaml: content: [")
            config_file = f.name

        try:
            manager = ConfigurationManager(config_file)
            with pytest.raises(ValueError, match="Invalid YAML"):
                manager.load_config()
        finally:
            os.unlink(config_file)

    def test_invalid_json_raises_error(self):
        """Test that invalid JSON raises error."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            f.write('{"invalid": json content}')
            config_file = f.name

        try:
            manager = ConfigurationManager(config_file)
            with pytest.raises(ValueError, match="Invalid JSON"):
                manager.load_config()
        finally:
            os.unlink(config_file)

    def test_missing_config_file_raises_error(self):
        """Test that missing configuration file raises error."""
        manager = ConfigurationManager("nonexistent.yaml")
        with pytest.raises(FileNotFoundError):
            manager.load_config()

    def test_inverted_price_band_raises_error(self):
        """Test that min greater than max is rejected."""
        config_data = self.get_valid_config_data()
        config_data["rules"]["price_band"] = {"min": 10, "max": -10}
        config_file = self.create_temp_config(config_data, "yaml")

        try:
            with pytest.raises(ValueError, match="Invalid range"):
                ConfigurationManager(config_file).load_config()
        finally:
            os.unlink(config_file)

    def test_get_config_loads_if_not_cached(self):
        """Test that get_config loads configuration if not cached."""
        config_file = self.create_temp_config(self.get_valid_config_data(), "yaml")

        try:
            manager = ConfigurationManager(config_file)
            config1 = manager.get_config()
            config2 = manager.get_config()

            assert config1 is config2
        finally:
            os.unlink(config_file)

    def test_reload_if_changed_detects_modification(self):
        """Test that reload_if_changed detects file modifications."""
        config_data = self.get_valid_config_data()
        config_file = self.create_temp_config(config_data, "yaml")

        try:
            manager = ConfigurationManager(config_file)
            manager.load_config()
            assert manager.reload_if_changed() is False

            config_data["rules"]["keychain_threshold"] = 80
            with open(config_file, "w", encoding="utf-8") as f:
                yaml.dump(config_data, f)
            future = time.time() + 5
            os.utime(config_file, (future, future))

            assert manager.reload_if_changed() is True
            assert manager.get_config().rules.keychain_threshold == 80
        finally:
            os.unlink(config_file)

    def test_reload_keeps_config_on_invalid_file(self):
        """Test that a broken edit keeps the previous configuration."""
        config_file = self.create_temp_config(self.get_valid_config_data(), "yaml")

        try:
            manager = ConfigurationManager(config_file)
            original = manager.load_config()

            with open(config_file, "w", encoding="utf-8") as f:
                f.write("rules: [")
            future = time.time() + 5
            os.utime(config_file, (future, future))

            assert manager.reload_if_changed() is False
            assert manager.get_config() is original
        finally:
            os.unlink(config_file)

    def test_validate_config_file(self):
        """Test validating a configuration file without loading it."""
        config_file = self.create_temp_config(self.get_valid_config_data(), "yaml")

        try:
            manager = ConfigurationManager(config_file)
            assert manager.validate_config_file(config_file) is True
        finally:
            os.unlink(config_file)

    def test_validate_config_file_reports_errors(self):
        """Test that validation reports invalid settings."""
        config_data = self.get_valid_config_data()
        config_data["rules"]["keychain_threshold"] = 250
        config_file = self.create_temp_config(config_data, "yaml")

        try:
            manager = ConfigurationManager(config_file)
            with pytest.raises(ValueError, match="Configuration validation failed"):
                manager.validate_config_file(config_file)
        finally:
            os.unlink(config_file)

    def test_config_template_is_valid(self):
        """Test that the template parses into a valid configuration."""
        manager = ConfigurationManager("unused.yaml")
        template = manager.get_config_template()

        with patch.dict(os.environ, {"TRADEIT_PRICES_URL": "https://prices.example.com/t.json"}):
            config = manager._parse_config(manager._expand_env_vars(template))

        assert config.validate() is True
        assert config.rules.uses_price_comparison() is True
