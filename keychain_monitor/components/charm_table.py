"""Static keychain charm price table, grouped by collection and rarity."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

CHARM_PREFIX = "charm | "


class CharmCategory(Enum):
    """Charm rarity, highest first."""

    RED = "Red"
    PINK = "Pink"
    PURPLE = "Purple"
    BLUE = "Blue"

    @classmethod
    def parse(cls, value: str) -> "CharmCategory":
        for category in cls:
            if category.value.lower() == str(value).strip().lower():
                return category
        raise ValueError(f"Unknown charm category: {value}")


@dataclass(frozen=True)
class CharmPrice:
    """One row of the price table."""

    name: str
    category: CharmCategory
    price: float
    collection: str


DEFAULT_CHARM_PRICES: Dict[str, Dict[str, Dict[str, float]]] = {
    "Small Arms": {
        "Red": {"Baby Karat T": 65.0, "Baby Karat CT": 45.0},
        "Pink": {"Semi-Precious": 50.0, "Titanium AWP": 15.0, "Lil' Squirt": 10.0},
        "Purple": {
            "Die-cast AK": 10.0,
            "Glamour Shot": 3.0,
            "Hot Hands": 2.5,
            "POP Art": 2.5,
            "Disco MAC": 2.0,
        },
        "Blue": {
            "Baby's AK": 0.8,
            "Pocket AWP": 0.5,
            "Whittle Knife": 0.5,
            "Stitch-Loaded": 0.25,
            "Lil' Cap Gun": 0.25,
            "Backsplash": 0.24,
        },
    },
    "Missing Link": {
        "Red": {"Hot Howl": 70.0, "Hot Wurst": 60.0},
        "Pink": {"Diamond Dog": 30.0, "Lil' Monster": 20.0, "Diner Dog": 15.0},
        "Purple": {
            "Lil' Teacup": 5.0,
            "Chicken Lil'": 4.5,
            "That's Bananas": 3.5,
            "Lil' Whiskers": 2.5,
            "Lil' Sandy": 2.5,
            "Lil' Squatch": 1.5,
        },
        "Blue": {
            "Lil' SAS": 1.0,
            "Hot Sauce": 0.5,
            "Pinch O' Salt": 0.5,
            "Big Kev": 0.5,
            "Lil' Crass": 0.4,
            "Lil' Ava": 0.4,
        },
    },
    "Missing Link Community": {
        "Red": {
            "Lil' Boo": 100.0,
            "Lil' Eldritch": 50.0,
            "Quick Silver": 45.0,
            "Lil' Serpent": 35.0,
        },
        "Pink": {
            "Lil' Hero": 20.0,
            "Piñatita": 15.0,
            "Lil' Happy": 12.0,
            "Lil' Chirp": 12.0,
            "Lil' Prick": 8.0,
        },
        "Purple": {
            "Pocket Pop": 3.5,
            "Lil' Moments": 3.0,
            "Magmatude": 2.5,
            "Lil' Goop": 2.25,
            "Lil' Buns": 1.5,
            "Hang Loose": 1.25,
        },
        "Blue": {
            "Lil' No. 2": 0.5,
            "Lil' Cackle": 0.35,
            "Dead Weight": 0.3,
            "Lil' Baller": 0.3,
            "Lil' Smokey": 0.25,
            "Lil' Tusk": 0.2,
            "Lil' Vino": 0.2,
            "Lil' Curse": 0.2,
        },
    },
    "Dr Boom": {
        "Red": {
            "Butane Buddy": 100.0,
            "Glitter Bomb": 60.0,
            "8 Ball IGL": 50.0,
            "Lil' Ferno": 35.0,
        },
        "Pink": {
            "Lil' Eco": 13.0,
            "Lil' Yeti": 13.0,
            "Flash Bomb": 10.0,
            "Eye of Ball": 8.0,
            "Hungry Eyes": 7.0,
        },
        "Purple": {
            "Lil' Bloody": 2.5,
            "Lil' Dumplin'": 2.0,
            "Dr. Brian": 1.5,
            "Lil' Chomper": 1.0,
            "Lil' Facelift": 1.0,
            "Big Brain": 1.0,
            "Bomb Tag": 1.0,
        },
        "Blue": {
            "Lil' Zen": 0.5,
            "Splatter Cat": 0.25,
            "Gritty": 0.2,
            "Whittle Guy": 0.2,
            "Fluffy": 0.2,
            "Biomech": 0.2,
        },
    },
}


class CharmPriceTable:
    """Lookup of charm name -> category and price, loaded once per session."""

    def __init__(self, data: Optional[Dict[str, Dict[str, Dict[str, float]]]] = None):
        """
        Build the table from {collection: {category: {name: price}}}.

        Raises:
            ValueError: On an unknown category or a non-numeric price.
        """
        self._entries: Dict[str, CharmPrice] = {}

        for collection, categories in (data or DEFAULT_CHARM_PRICES).items():
            for category_name, charms in (categories or {}).items():
                category = CharmCategory.parse(category_name)
                for name, price in (charms or {}).items():
                    key = name.strip().lower()
                    if key in self._entries:
                        # First collection listed wins for duplicate names
                        logger.debug(f"Duplicate charm name ignored: {name} ({collection})")
                        continue
                    self._entries[key] = CharmPrice(
                        name=name.strip(),
                        category=category,
                        price=float(price),
                        collection=collection,
                    )

        logger.info(f"Charm price table loaded with {len(self._entries)} charms")

    @classmethod
    def from_yaml(cls, path: str) -> "CharmPriceTable":
        """Load a table override from a YAML file."""
        table_path = Path(path)
        if not table_path.exists():
            raise FileNotFoundError(f"Charm price table not found: {path}")

        with open(table_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Charm price table must be a mapping: {path}")

        return cls(data)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return self.find(name) is not None

    def find(self, name: str) -> Optional[CharmPrice]:
        """Case-insensitive exact lookup across all categories."""
        if not name:
            return None
        return self._entries.get(name.strip().lower())

    def names(self) -> List[str]:
        return [entry.name for entry in self._entries.values()]

    def names_in_category(self, category: CharmCategory) -> List[str]:
        return [entry.name for entry in self._entries.values() if entry.category is category]

    def is_in_category(self, name: str, category: CharmCategory) -> bool:
        entry = self.find(name)
        return entry is not None and entry.category is category

    def is_accessory_name(self, market_name: str) -> bool:
        """True when a listing's name is itself a charm, optionally 'Charm | <name>'."""
        name = (market_name or "").strip().lower()
        if name in self._entries:
            return True
        if name.startswith(CHARM_PREFIX):
            return name[len(CHARM_PREFIX):].strip() in self._entries
        return False
