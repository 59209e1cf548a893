"""
Configuration models for the system.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from .rules import RuleStore


@dataclass
class ReferenceSourceConfig:
    """One external reference price source."""

    url: str
    name: Optional[str] = None
    price_multiplier: float = 1.0

    def validate(self) -> bool:
        if not self.url or not self.url.strip():
            raise ValueError("Reference source URL cannot be empty")

        parsed_url = urlparse(self.url)
        if parsed_url.scheme not in ["http", "https"] or not parsed_url.netloc:
            raise ValueError(f"Reference source URL must use HTTP or HTTPS: {self.url}")

        if self.price_multiplier <= 0:
            raise ValueError("Reference source price multiplier must be positive")

        return True


@dataclass
class ReferencePriceConfig:
    """Configuration for the cached reference price table."""

    sources: List[ReferenceSourceConfig] = field(default_factory=list)
    cache_ttl_seconds: int = 3600
    request_timeout: int = 30
    max_retries: int = 3

    def validate(self) -> bool:
        for source in self.sources:
            source.validate()

        if not isinstance(self.cache_ttl_seconds, int) or self.cache_ttl_seconds <= 0:
            raise ValueError("Reference price cache TTL must be a positive integer")

        if not isinstance(self.request_timeout, int) or self.request_timeout <= 0:
            raise ValueError("Reference price request timeout must be a positive integer")

        if not isinstance(self.max_retries, int) or self.max_retries < 0:
            raise ValueError("Reference price max retries cannot be negative")

        return True


@dataclass
class Configuration:
    """System configuration."""

    rules: RuleStore
    reference_prices: ReferencePriceConfig
    max_notified_ids: int = 1000
    history_retention_minutes: int = 60
    history_window_minutes: int = 30
    charm_table_path: Optional[str] = None
    log_level: str = "INFO"
    log_dir: str = "logs"

    def validate(self) -> bool:
        """Validate system configuration."""
        if not isinstance(self.max_notified_ids, int) or self.max_notified_ids < 2:
            raise ValueError("Max notified IDs must be an integer of at least 2")

        if (
            not isinstance(self.history_retention_minutes, int)
            or self.history_retention_minutes <= 0
        ):
            raise ValueError("History retention must be a positive integer")

        if (
            not isinstance(self.history_window_minutes, int)
            or self.history_window_minutes <= 0
        ):
            raise ValueError("History window must be a positive integer")

        if self.history_window_minutes > self.history_retention_minutes:
            raise ValueError("History window cannot exceed history retention")

        if self.log_level.upper() not in ["DEBUG", "INFO", "WARNING", "ERROR"]:
            raise ValueError("Log level must be one of DEBUG, INFO, WARNING, ERROR")

        self.rules.validate()
        self.reference_prices.validate()

        return True

    def to_summary(self) -> Dict[str, Any]:
        return {
            "price_band": [
                self.rules.min_above_recommended,
                self.rules.max_above_recommended,
            ],
            "keychain_threshold": self.rules.keychain_threshold,
            "enabled_keychains": len(self.rules.enabled_keychains),
            "target_entries": len(self.rules.target_entries),
            "reference_sources": len(self.reference_prices.sources),
            "max_notified_ids": self.max_notified_ids,
        }
