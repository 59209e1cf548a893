"""
Rule models consumed by the matching engine.

A RuleStore is an immutable, versioned value. Mutations go through
RuleStoreManager, which builds a new version and swaps it in.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Optional, Tuple


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """
    Return the first key with a non-null value, so camelCase and snake_case
    both work. A null value falls back to the default.
    """
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


def _bound(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


@dataclass(frozen=True)
class RangeFilter:
    """Inclusive [min, max] sub-filter; a None bound is unbounded on that side."""

    enabled: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    use_comparison: bool = False

    def contains(self, value: float) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True

    def validate(self, name: str = "range") -> bool:
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"{name} filter min cannot be greater than max")
        return True

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RangeFilter":
        if not data:
            return cls()
        return cls(
            enabled=bool(data.get("enabled", False)),
            min=_bound(data.get("min")),
            max=_bound(data.get("max")),
            use_comparison=bool(
                _pick(data, "useComparison", "use_comparison", default=False)
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "min": self.min,
            "max": self.max,
            "useComparison": self.use_comparison,
        }


@dataclass(frozen=True)
class TargetEntry:
    """One user-defined target: a keyword target or a keyword-less universal filter."""

    id: str
    keyword: Optional[str] = None
    is_universal: bool = False
    float_filter: RangeFilter = field(default_factory=RangeFilter)
    percent_diff_filter: RangeFilter = field(default_factory=RangeFilter)
    price_filter: RangeFilter = field(default_factory=RangeFilter)

    @property
    def universal(self) -> bool:
        """An explicit flag or a missing/blank keyword makes the entry universal."""
        return self.is_universal or not (self.keyword or "").strip()

    @property
    def normalized_keyword(self) -> str:
        return (self.keyword or "").strip().lower()

    @property
    def label(self) -> str:
        return "Universal Filter" if self.universal else str(self.keyword)

    def validate(self) -> bool:
        if not self.id or not str(self.id).strip():
            raise ValueError("Target entry ID cannot be empty")

        if self.keyword is not None and not isinstance(self.keyword, str):
            raise ValueError("Target entry keyword must be a string")

        self.float_filter.validate("float")
        for bound in (self.float_filter.min, self.float_filter.max):
            if bound is not None and not (0 <= bound <= 1):
                raise ValueError("Float filter bounds must be between 0 and 1")

        self.percent_diff_filter.validate("percent difference")
        self.price_filter.validate("price")
        return True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TargetEntry":
        if not isinstance(data, dict):
            raise ValueError("Target entry must be a mapping")

        return cls(
            id=str(data.get("id") or ""),
            keyword=data.get("keyword"),
            is_universal=bool(_pick(data, "isUniversal", "is_universal", default=False)),
            float_filter=RangeFilter.from_dict(_pick(data, "floatFilter", "float_filter")),
            percent_diff_filter=RangeFilter.from_dict(
                _pick(data, "percentDiffFilter", "percent_diff_filter")
            ),
            price_filter=RangeFilter.from_dict(_pick(data, "priceFilter", "price_filter")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "keyword": self.keyword,
            "isUniversal": self.universal,
            "floatFilter": self.float_filter.to_dict(),
            "percentDiffFilter": self.percent_diff_filter.to_dict(),
            "priceFilter": self.price_filter.to_dict(),
        }


@dataclass(frozen=True)
class RuleStore:
    """Versioned snapshot of everything the matching engine consumes."""

    min_above_recommended: float = -50.0
    max_above_recommended: float = 5.0
    keychain_threshold: float = 50.0
    enabled_keychains: FrozenSet[str] = frozenset()
    target_entries: Tuple[TargetEntry, ...] = ()
    version: int = 0

    @property
    def specific_entries(self) -> Tuple[TargetEntry, ...]:
        return tuple(entry for entry in self.target_entries if not entry.universal)

    def is_keychain_enabled(self, name: str) -> bool:
        return name.lower() in {enabled.lower() for enabled in self.enabled_keychains}

    def uses_price_comparison(self) -> bool:
        return any(
            entry.percent_diff_filter.enabled and entry.percent_diff_filter.use_comparison
            for entry in self.target_entries
        )

    def validate(self) -> bool:
        if self.min_above_recommended > self.max_above_recommended:
            raise ValueError(
                "Invalid range: min above-recommended cannot be greater than max"
            )

        if not (0 <= self.keychain_threshold <= 100):
            raise ValueError("Keychain percentage threshold must be between 0 and 100")

        seen_ids = set()
        for entry in self.target_entries:
            entry.validate()
            if entry.id in seen_ids:
                raise ValueError(f"Duplicate target entry ID: {entry.id}")
            seen_ids.add(entry.id)

        return True

    def evolve(self, **changes: Any) -> "RuleStore":
        """Return the next version with the given fields replaced."""
        return replace(self, version=self.version + 1, **changes)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RuleStore":
        data = data or {}
        band = _pick(data, "priceBand", "price_band", default={}) or {}
        defaults = cls()

        return cls(
            min_above_recommended=float(
                _pick(
                    band,
                    "min",
                    default=_pick(
                        data,
                        "minAboveRecommended",
                        "min_above_recommended",
                        default=defaults.min_above_recommended,
                    ),
                )
            ),
            max_above_recommended=float(
                _pick(
                    band,
                    "max",
                    default=_pick(
                        data,
                        "maxAboveRecommended",
                        "max_above_recommended",
                        default=defaults.max_above_recommended,
                    ),
                )
            ),
            keychain_threshold=float(
                _pick(
                    data,
                    "keychainPercentage",
                    "keychain_threshold",
                    default=defaults.keychain_threshold,
                )
            ),
            enabled_keychains=frozenset(
                _pick(data, "enabledKeychains", "enabled_keychains", default=[]) or []
            ),
            target_entries=tuple(
                TargetEntry.from_dict(entry)
                for entry in _pick(data, "targetEntries", "target_entries", default=[])
                or []
            ),
        )
