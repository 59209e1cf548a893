"""
Configuration management system for the Keychain Monitor.
"""

import json
import os
from typing import Any, Dict, Optional

import yaml

from ..models.config import Configuration, ReferencePriceConfig, ReferenceSourceConfig
from ..models.rules import RuleStore


class ConfigurationManager:
    """Manages loading, validation, and reloading of system configuration."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file. If None, uses default paths.
        """
        self.config_path = config_path or self._find_config_file()
        self._config: Optional[Configuration] = None
        self._last_modified: Optional[float] = None

    def _find_config_file(self) -> str:
        """Find the configuration file in standard locations."""
        possible_paths = [
            "config/config.yaml",
            "config/config.yml",
            "config/config.json",
            "config.yaml",
            "config.yml",
            "config.json",
        ]

        for path in possible_paths:
            if os.path.exists(path):
                return path

        if os.path.exists("config/config.example.yaml"):
            raise ValueError(
                "No configuration file found. Please copy 'config/config.example.yaml' "
                "to 'config/config.yaml' and customize it for your needs."
            )

        raise ValueError(
            "No configuration file found. Please create a configuration file "
            "at one of these locations: " + ", ".join(possible_paths)
        )

    def _read_raw_config(self, config_path: str) -> Dict[str, Any]:
        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.endswith(".json"):
                raw_config = json.load(f)
            else:
                raw_config = yaml.safe_load(f)

        if raw_config is None:
            return {}
        if not isinstance(raw_config, dict):
            raise ValueError("Configuration root must be a mapping")
        return raw_config

    def load_config(self) -> Configuration:
        """
        Load configuration from file.

        Returns:
            Configuration object with validated settings.

        Raises:
            ValueError: If configuration is invalid or file cannot be read.
            FileNotFoundError: If configuration file doesn't exist.
        """
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            raw_config = self._read_raw_config(self.config_path)
            raw_config = self._expand_env_vars(raw_config)

            config = self._parse_config(raw_config)
            config.validate()

            self._config = config
            self._last_modified = os.path.getmtime(self.config_path)

            return config

        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")
        except Exception as e:
            raise ValueError(f"Error loading configuration: {e}")

    def _expand_env_vars(self, obj: Any) -> Any:
        """Recursively expand ${VAR_NAME} values from the environment."""
        if isinstance(obj, dict):
            return {key: self._expand_env_vars(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [self._expand_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            if obj.startswith("${") and obj.endswith("}"):
                var_name = obj[2:-1]
                env_value = os.getenv(var_name)
                if env_value is None:
                    raise ValueError(f"Environment variable '{var_name}' not found")
                return env_value
            return obj
        else:
            return obj

    def _parse_config(self, raw_config: Dict[str, Any]) -> Configuration:
        """Parse raw configuration dictionary into Configuration object."""
        try:
            rules = RuleStore.from_dict(raw_config.get("rules", {}))

            reference_data = raw_config.get("reference_prices", {}) or {}
            sources = [
                ReferenceSourceConfig(
                    url=source.get("url", ""),
                    name=source.get("name"),
                    price_multiplier=float(source.get("price_multiplier", 1.0)),
                )
                for source in reference_data.get("sources", []) or []
            ]
            reference_prices = ReferencePriceConfig(
                sources=sources,
                cache_ttl_seconds=int(reference_data.get("cache_ttl_seconds", 3600)),
                request_timeout=int(reference_data.get("request_timeout", 30)),
                max_retries=int(reference_data.get("max_retries", 3)),
            )

            dedup_data = raw_config.get("dedup", {}) or {}
            history_data = raw_config.get("history", {}) or {}
            system_data = raw_config.get("system", {}) or {}

            return Configuration(
                rules=rules,
                reference_prices=reference_prices,
                max_notified_ids=dedup_data.get("max_notified_ids", 1000),
                history_retention_minutes=history_data.get("retention_minutes", 60),
                history_window_minutes=history_data.get("window_minutes", 30),
                charm_table_path=raw_config.get("charm_table_path"),
                log_level=system_data.get("log_level", "INFO"),
                log_dir=system_data.get("log_dir", "logs"),
            )

        except KeyError as e:
            raise ValueError(f"Missing required configuration key: {e}")
        except (TypeError, ValueError, AttributeError) as e:
            raise ValueError(f"Error parsing configuration: {e}")

    def get_config(self) -> Configuration:
        """
        Get current configuration, loading if necessary.

        Returns:
            Current configuration object.
        """
        if self._config is None:
            return self.load_config()
        return self._config

    def reload_if_changed(self) -> bool:
        """
        Reload configuration if file has been modified.

        Returns:
            True if configuration was reloaded, False otherwise.
        """
        if not os.path.exists(self.config_path):
            return False

        current_modified = os.path.getmtime(self.config_path)

        if self._last_modified is None or current_modified > self._last_modified:
            try:
                self.load_config()
                return True
            except ValueError:
                # If reload fails, keep current config
                return False

        return False

    def validate_config_file(self, config_path: str) -> bool:
        """
        Validate a configuration file without loading it.

        Raises:
            ValueError: If configuration is invalid with detailed error message.
        """
        if not os.path.exists(config_path):
            raise ValueError(f"Configuration file not found: {config_path}")

        try:
            raw_config = self._read_raw_config(config_path)

            # Missing env vars are tolerated when only validating
            try:
                raw_config = self._expand_env_vars(raw_config)
            except ValueError:
                pass

            config = self._parse_config(raw_config)
            config.validate()

            return True

        except Exception as e:
            raise ValueError(f"Configuration validation failed: {e}")

    def get_config_template(self) -> Dict[str, Any]:
        """
        Get a template configuration dictionary.

        Returns:
            Dictionary with example configuration structure.
        """
        return {
            "rules": {
                "price_band": {"min": -50, "max": 5},
                "keychain_threshold": 50,
                "enabled_keychains": ["Hot Howl", "Baby Karat T", "Hot Wurst"],
                "target_entries": [
                    {
                        "id": "entry_redline",
                        "keyword": "AK-47 | Redline",
                        "floatFilter": {"enabled": True, "min": 0.15, "max": 0.25},
                        "percentDiffFilter": {"enabled": False},
                        "priceFilter": {"enabled": True, "min": None, "max": 60},
                    },
                    {
                        "id": "entry_universal",
                        "isUniversal": True,
                        "percentDiffFilter": {
                            "enabled": True,
                            "min": 110,
                            "max": None,
                            "useComparison": True,
                        },
                    },
                ],
            },
            "reference_prices": {
                "sources": [
                    {
                        "name": "tradeit.gg",
                        "url": "${TRADEIT_PRICES_URL}",
                        "price_multiplier": 0.925,
                    }
                ],
                "cache_ttl_seconds": 3600,
                "request_timeout": 30,
            },
            "dedup": {"max_notified_ids": 1000},
            "history": {"retention_minutes": 60, "window_minutes": 30},
            "system": {"log_level": "INFO", "log_dir": "logs"},
        }
