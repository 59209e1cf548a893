"""
Notification models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .item import Item
from .match import MatchCategory, MatchResult


@dataclass
class NotificationRecord:
    """An accepted item as stored in the notification history."""

    id: str
    market_name: str
    notification_type: str
    market_value: Optional[int]
    above_recommended_price: Optional[float]
    wear: Optional[float]
    keychains: List[str]
    timestamp: datetime
    published_at: Optional[datetime] = None
    matched_keyword: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "market_name": self.market_name,
            "notification_type": self.notification_type,
            "market_value": self.market_value,
            "above_recommended_price": self.above_recommended_price,
            "wear": self.wear,
            "keychains": list(self.keychains),
            "matched_keyword": self.matched_keyword,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "timestamp": self.timestamp.isoformat(),
        }


def build_notification_payload(item: Item, result: MatchResult) -> Dict[str, Any]:
    """
    Copy the item's raw payload and augment it with match metadata.

    Raises:
        ValueError: If the result is not an accepted match.
    """
    if not result.accepted:
        raise ValueError("Cannot build a notification for a rejected item")

    payload = dict(item.raw)
    payload.setdefault("id", item.id)
    payload.setdefault("market_name", item.market_name)
    payload["notification_type"] = result.notification_type

    if result.category is MatchCategory.KEYCHAIN:
        payload["charm_category"] = result.charm_category
        payload["charm_name"] = result.accessory
        payload["charm_price"] = result.charm_price
        payload["charm_price_display"] = f"${result.charm_price:.2f}"
    elif result.entry is not None:
        payload["target_item_matched"] = result.entry.to_dict()

    if result.percent_difference is not None:
        payload["percent_difference"] = round(result.percent_difference, 2)

    return payload
