"""Name matching policy used to pair item names with target keywords."""

from enum import Enum
from typing import Optional

SUBSTANTIAL_RATIO = 0.5


class NameMatchRule(Enum):
    """Which rule paired an item name with a keyword."""

    EXACT = "exact"
    SUBSTRING = "substring"
    REVERSE_SUBSTRING = "reverse_substring"


def normalize(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def is_substantial_substring(
    needle: str, haystack: str, ratio: float = SUBSTANTIAL_RATIO
) -> bool:
    """True when needle occurs in haystack and covers more than ratio of its length."""
    if not needle or not haystack:
        return False
    return needle in haystack and len(needle) > ratio * len(haystack)


def match_keyword(item_name: str, keyword: str) -> Optional[NameMatchRule]:
    """
    Test the three keyword rules in order and return the first that holds.

    Both arguments are expected to be normalized already.
    """
    if not keyword or not item_name:
        return None

    if item_name == keyword:
        return NameMatchRule.EXACT

    if is_substantial_substring(keyword, item_name):
        return NameMatchRule.SUBSTRING

    if is_substantial_substring(item_name, keyword):
        return NameMatchRule.REVERSE_SUBSTRING

    return None
