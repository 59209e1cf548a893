"""
Data models for the Keychain Monitor system.

This module contains the data classes used throughout the application
for representing feed items, rules, match results and configuration.
"""

from .config import Configuration, ReferencePriceConfig, ReferenceSourceConfig
from .item import Accessory, Item
from .match import MatchCategory, MatchResult, RejectionReason
from .notification import NotificationRecord, build_notification_payload
from .rules import RangeFilter, RuleStore, TargetEntry

__all__ = [
    "Accessory",
    "Item",
    "RangeFilter",
    "TargetEntry",
    "RuleStore",
    "MatchCategory",
    "MatchResult",
    "RejectionReason",
    "NotificationRecord",
    "build_notification_payload",
    "Configuration",
    "ReferencePriceConfig",
    "ReferenceSourceConfig",
]
