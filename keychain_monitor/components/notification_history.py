"""Short-lived history of emitted notifications."""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

from ..models.item import Item
from ..models.match import MatchResult
from ..models.notification import NotificationRecord

logger = logging.getLogger(__name__)


def parse_published_at(value: Any) -> Optional[datetime]:
    """
    Parse the feed's published_at value.

    Strings go through dateutil; numbers are epoch seconds, or epoch
    milliseconds when too large for seconds. Anything else becomes None.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            if abs(value) > 1e11:
                value = value / 1000
            return datetime.fromtimestamp(value)
        return date_parser.parse(value)
    except (ValueError, OverflowError, OSError, TypeError) as e:
        logger.warning(f"Could not parse published_at '{value}': {e}")
        return None


class NotificationHistory:
    """Keeps accepted notifications for a retention period, newest first."""

    def __init__(self, retention_minutes: int = 60, window_minutes: int = 30):
        self.retention = timedelta(minutes=retention_minutes)
        self.window_minutes = window_minutes
        self._records: List[NotificationRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def store(
        self,
        item: Item,
        result: MatchResult,
        payload: Dict[str, Any],
        now: Optional[datetime] = None,
    ) -> NotificationRecord:
        now = now or datetime.now()
        record = NotificationRecord(
            id=item.id,
            market_name=item.market_name,
            notification_type=result.notification_type or "",
            market_value=item.market_value,
            above_recommended_price=item.above_recommended_price,
            wear=item.wear,
            keychains=item.accessory_names,
            timestamp=now,
            published_at=parse_published_at(item.published_at),
            matched_keyword=result.entry.keyword if result.entry else None,
            payload=payload,
        )

        self._records.insert(0, record)
        self.prune(now)

        wear = f"{item.wear:.6f}" if item.wear is not None else "N/A"
        logger.info(
            f"Stored notification in history: {item.market_name} "
            f"(Float: {wear}) (Total: {len(self._records)})"
        )
        return record

    def prune(self, now: Optional[datetime] = None) -> int:
        cutoff = (now or datetime.now()) - self.retention
        before = len(self._records)
        self._records = [r for r in self._records if r.timestamp > cutoff]
        return before - len(self._records)

    def recent(
        self, window_minutes: Optional[int] = None, now: Optional[datetime] = None
    ) -> List[NotificationRecord]:
        """Records newer than the window, newest first."""
        minutes = window_minutes if window_minutes is not None else self.window_minutes
        cutoff = (now or datetime.now()) - timedelta(minutes=minutes)
        recent = [r for r in self._records if r.timestamp > cutoff]
        return sorted(recent, key=lambda r: r.timestamp, reverse=True)
