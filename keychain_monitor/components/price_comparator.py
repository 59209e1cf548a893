"""Percentage comparison between the marketplace price and an external reference price."""

import logging
import re
from typing import Callable, Dict, Optional, Tuple

from ..models.item import Item
from .reference_prices import ReferencePrice, lookup_key, normalize_market_name

logger = logging.getLogger(__name__)

VARIANT_MARKERS = ("doppler", "ruby", "sapphire", "emerald", "black pearl")

VARIANT_TOKEN_PATTERN = re.compile(
    r"(Ruby|Sapphire|Emerald|Black Pearl|Phase [1-4])\s*$", re.IGNORECASE
)

# Separators that may sit between the base name and a trailing variant token
TRAILING_SEPARATORS = " -|"


def is_variant_name(name: str) -> bool:
    lowered = (name or "").lower()
    return any(marker in lowered for marker in VARIANT_MARKERS)


def split_variant(name: str) -> Optional[Tuple[str, str]]:
    """
    Split 'AK-47 | Case Hardened (Factory New) - Sapphire' into
    ('AK-47 | Case Hardened (Factory New)', 'Sapphire').

    Returns None when no trailing variant token is present.
    """
    normalized = normalize_market_name(name)
    match = VARIANT_TOKEN_PATTERN.search(normalized)
    if not match:
        return None

    variant = match.group(1).title()
    base_name = normalize_market_name(normalized[: match.start()].rstrip(TRAILING_SEPARATORS))
    return base_name, variant


class PriceComparator:
    """Computes reference price / marketplace price as a percentage."""

    def __init__(self, table_source: Callable[[], Dict[str, ReferencePrice]]):
        """
        Args:
            table_source: Callable returning the current reference table
                (name lower-cased -> ReferencePrice). It must not raise.
        """
        self.table_source = table_source

    def reference_price(self, market_name: str) -> Optional[float]:
        """Resolve the reference price for a market name, or None."""
        table = self.table_source() or {}

        if is_variant_name(market_name):
            split = split_variant(market_name)
            if split is None:
                logger.debug(f"Variant item without a variant token: {market_name}")
                return None

            base_name, variant = split
            entry = table.get(base_name.lower())
            if entry is None:
                return None
            return entry.variants.get(variant)

        entry = table.get(lookup_key(market_name))
        return entry.price if entry is not None else None

    def percent_difference(self, item: Item) -> Optional[float]:
        """(reference price / marketplace dollars) * 100, or None when unavailable."""
        reference = self.reference_price(item.market_name)
        if reference is None or reference <= 0:
            return None

        empire_price = item.market_value_dollars
        if empire_price is None or empire_price <= 0:
            return None

        return (reference / empire_price) * 100
