"""
Match result models.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .rules import TargetEntry


class MatchCategory(Enum):
    """Outcome categories of a classification."""

    REJECTED = "rejected"
    SPECIFIC_TARGET = "specific_target"
    KEYCHAIN = "keychain"
    UNIVERSAL = "universal"


class RejectionReason(Enum):
    """Named rejection counters."""

    NO_MATCH = "no_match"
    PRICE_FILTER = "price_filter"
    FLOAT_FILTER = "float_filter"
    FLOAT_UNAVAILABLE = "float_unavailable"
    PERCENT_DIFF_FILTER = "percent_diff_filter"
    PERCENT_DIFF_UNAVAILABLE = "percent_diff_unavailable"
    ITEM_PRICE_FILTER = "item_price_filter"
    MISSING_MARKET_VALUE = "missing_market_value"
    UNKNOWN_KEYCHAIN = "unknown_keychain"
    KEYCHAIN_DISABLED = "keychain_disabled"
    KEYCHAIN_PERCENTAGE = "keychain_percentage"
    MARKET_NAME_MATCHES_KEYCHAIN = "market_name_matches_keychain"
    COVERED_BY_TARGET_KEYWORD = "covered_by_target_keyword"


@dataclass(frozen=True)
class MatchResult:
    """Verdict of the matching engine for one item."""

    category: MatchCategory
    entry: Optional[TargetEntry] = None
    accessory: Optional[str] = None
    charm_category: Optional[str] = None
    charm_price: Optional[float] = None
    charm_percentage: Optional[float] = None
    percent_difference: Optional[float] = None
    rejection: Optional[RejectionReason] = None
    reason: str = ""
    # A terminal rejection stops later strategies from running.
    terminal: bool = field(default=False, compare=False)

    @property
    def accepted(self) -> bool:
        return self.category is not MatchCategory.REJECTED

    @property
    def notification_type(self) -> Optional[str]:
        if self.category is MatchCategory.KEYCHAIN:
            return "keychain"
        if self.category in (MatchCategory.SPECIFIC_TARGET, MatchCategory.UNIVERSAL):
            return "target_item"
        return None

    @classmethod
    def rejected(
        cls,
        rejection: RejectionReason,
        reason: str,
        entry: Optional[TargetEntry] = None,
        terminal: bool = False,
    ) -> "MatchResult":
        return cls(
            category=MatchCategory.REJECTED,
            entry=entry,
            rejection=rejection,
            reason=reason,
            terminal=terminal,
        )
