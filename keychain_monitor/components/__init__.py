"""
Core components for the Keychain Monitor system.

This module contains the charm price table, the matching engine, the
price comparator with its reference price provider, the deduplication
ledger and the notification history.
"""

from .charm_table import CharmCategory, CharmPrice, CharmPriceTable
from .dedup_ledger import DeduplicationLedger
from .matching_engine import MatchingEngine, band_check
from .name_matching import is_substantial_substring, match_keyword
from .notification_history import NotificationHistory
from .price_comparator import PriceComparator
from .reference_prices import ReferencePrice, ReferencePriceProvider

__all__ = [
    "CharmCategory",
    "CharmPrice",
    "CharmPriceTable",
    "DeduplicationLedger",
    "MatchingEngine",
    "band_check",
    "is_substantial_substring",
    "match_keyword",
    "NotificationHistory",
    "PriceComparator",
    "ReferencePrice",
    "ReferencePriceProvider",
]
