"""
Item data models for the Keychain Monitor system.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _optional_float(value: Any, field_name: str) -> Optional[float]:
    """Coerce a payload value to float, mapping None/NaN/"" to None."""
    if value is None or value == "":
        return None

    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field_name} must be a number, got {value!r}")

    if math.isnan(number):
        return None
    return number


def _optional_int(value: Any, field_name: str) -> Optional[int]:
    number = _optional_float(value, field_name)
    return int(round(number)) if number is not None else None


@dataclass
class Accessory:
    """An attachment (keychain / charm) on a listed item."""

    name: str
    wear: Optional[float] = None

    def validate(self) -> bool:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Accessory name cannot be empty")
        return True


@dataclass
class Item:
    """A single marketplace listing as delivered by the feed."""

    id: str
    market_name: str
    market_value: Optional[int]
    above_recommended_price: Optional[float] = None
    wear: Optional[float] = None
    keychains: List[Accessory] = field(default_factory=list)
    purchase_price: Optional[int] = None
    published_at: Any = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def normalized_name(self) -> str:
        """Lower-cased, trimmed display name used for keyword matching."""
        return self.market_name.strip().lower()

    @property
    def market_value_dollars(self) -> Optional[float]:
        if self.market_value is None:
            return None
        return self.market_value / 100

    @property
    def accessory_names(self) -> List[str]:
        return [accessory.name for accessory in self.keychains]

    def validate(self) -> bool:
        """Validate the item data."""
        if not self.id or not self.id.strip():
            raise ValueError("Item ID cannot be empty")

        if not isinstance(self.market_name, str) or not self.market_name.strip():
            raise ValueError("Item market_name cannot be empty")

        if self.market_value is not None and self.market_value < 0:
            raise ValueError("Market value cannot be negative")

        if self.purchase_price is not None and self.purchase_price < 0:
            raise ValueError("Purchase price cannot be negative")

        if self.wear is not None and not (0 <= self.wear <= 1):
            raise ValueError("Wear must be between 0 and 1")

        for accessory in self.keychains:
            accessory.validate()

        return True

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Item":
        """
        Build an Item from a raw feed payload.

        Raises:
            ValueError: If the payload is malformed.
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Item payload must be a mapping, got {type(payload).__name__}")

        raw_id = payload.get("id")
        if raw_id is None:
            raise ValueError("Item payload is missing 'id'")

        keychains_data = payload.get("keychains") or []
        if isinstance(keychains_data, (dict, str)):
            keychains_data = [keychains_data]

        keychains = []
        for entry in keychains_data:
            if isinstance(entry, str):
                keychains.append(Accessory(name=entry))
            elif isinstance(entry, dict) and entry.get("name"):
                keychains.append(
                    Accessory(
                        name=str(entry["name"]),
                        wear=_optional_float(entry.get("wear"), "keychain wear"),
                    )
                )

        item = cls(
            id=str(raw_id),
            market_name=payload.get("market_name") or "",
            market_value=_optional_int(payload.get("market_value"), "market_value"),
            above_recommended_price=_optional_float(
                payload.get("above_recommended_price"), "above_recommended_price"
            ),
            wear=_optional_float(payload.get("wear"), "wear"),
            keychains=keychains,
            purchase_price=_optional_int(payload.get("purchase_price"), "purchase_price"),
            published_at=payload.get("published_at"),
            raw=dict(payload),
        )
        item.validate()
        return item
