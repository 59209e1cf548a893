"""
Item processing service.

Runs each feed batch through the matching pipeline one item at a time:
parse, dedup check, classify, record, annotate, store and notify. The
only suspension point is the reference price refresh before the batch,
so ledger checks and updates for one item never interleave with another.
"""

import asyncio
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from ..components.dedup_ledger import DeduplicationLedger
from ..components.matching_engine import MatchingEngine
from ..components.notification_history import NotificationHistory
from ..components.reference_prices import ReferencePriceProvider
from ..models.item import Item
from ..models.match import MatchCategory
from ..models.notification import build_notification_payload
from ..utils.error_handling import ErrorCategory, ErrorSeverity, get_error_tracker
from ..utils.logging import get_logger
from .rule_store_manager import RuleStoreManager

logger = get_logger("item.processor")

NotificationCallback = Union[
    Callable[[Dict[str, Any]], None],
    Callable[[Dict[str, Any]], Awaitable[None]],
]


class ItemProcessor:
    """Sequential, at-most-once notification pipeline for feed batches."""

    def __init__(
        self,
        engine: MatchingEngine,
        rule_store: RuleStoreManager,
        ledger: Optional[DeduplicationLedger] = None,
        history: Optional[NotificationHistory] = None,
        reference_prices: Optional[ReferencePriceProvider] = None,
        notification_callback: Optional[NotificationCallback] = None,
    ):
        self.engine = engine
        self.rule_store = rule_store
        self.ledger = ledger or DeduplicationLedger()
        self.history = history or NotificationHistory()
        self.reference_prices = reference_prices
        self.notification_callback = notification_callback

        self.stats: Dict[str, Any] = {
            "start_time": datetime.now(),
            "items_processed": 0,
            "targets_found": 0,
            "keychains_found": 0,
            "duplicates_skipped": 0,
            "invalid_items": 0,
            "notification_failures": 0,
            "processing_errors": 0,
            "last_match_at": None,
        }

    async def process_batch(self, payloads: Union[Iterable[Any], Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Process one feed batch in array order.

        Args:
            payloads: List of raw item payloads, or a single payload

        Returns:
            Notification payloads emitted for this batch
        """
        if isinstance(payloads, dict):
            payloads = [payloads]

        rules = self.rule_store.current
        if self.reference_prices is not None and rules.uses_price_comparison():
            await self.reference_prices.refresh_if_stale()

        emitted = []
        for payload in payloads:
            try:
                notification = self.process_item(payload)
            except Exception as e:
                payload_id = payload.get("id") if isinstance(payload, dict) else None
                logger.error(
                    f"Error processing item: {e}",
                    extra={"payload_id": payload_id},
                    exc_info=True,
                )
                self.stats["processing_errors"] += 1
                get_error_tracker().record_error(
                    component="item.processor",
                    category=ErrorCategory.SYSTEM,
                    severity=ErrorSeverity.HIGH,
                    message=f"Abandoned item {payload_id}: {e}",
                    exception=e,
                    context={"payload_id": payload_id},
                )
                continue

            if notification is None:
                continue

            emitted.append(notification)
            await self._notify(notification)

        return emitted

    def process_item(self, payload: Any) -> Optional[Dict[str, Any]]:
        """
        Run one payload through parse, dedup and classification.

        Returns:
            Notification payload if the item was accepted, else None
        """
        try:
            item = Item.from_payload(payload)
        except ValueError as e:
            self.stats["invalid_items"] += 1
            get_error_tracker().record_error(
                component="item.processor",
                category=ErrorCategory.DATA_VALIDATION,
                severity=ErrorSeverity.LOW,
                message=f"Skipping malformed item payload: {e}",
                context={"payload_id": payload.get("id") if isinstance(payload, dict) else None},
            )
            return None

        self.stats["items_processed"] += 1

        if self.ledger.has_notified(item.id):
            self.stats["duplicates_skipped"] += 1
            return None

        result = self.engine.classify(item, self.rule_store.current)
        if not result.accepted:
            return None

        notification = build_notification_payload(item, result)
        self.history.store(item, result, notification)
        self.ledger.record_notified(item.id)

        if result.category is MatchCategory.KEYCHAIN:
            self.stats["keychains_found"] += 1
        else:
            self.stats["targets_found"] += 1
        self.stats["last_match_at"] = datetime.now()

        logger.info(
            "Item matched",
            extra={
                "id": item.id,
                "market_name": item.market_name,
                "notification_type": result.notification_type,
                "market_value": item.market_value_dollars,
                "above_recommended_price": item.above_recommended_price,
                "wear": item.wear,
                "keychains": item.accessory_names,
                "reason": result.reason,
            },
        )
        return notification

    async def _notify(self, notification: Dict[str, Any]) -> None:
        if self.notification_callback is None:
            return

        try:
            if asyncio.iscoroutinefunction(self.notification_callback):
                await self.notification_callback(notification)
            else:
                self.notification_callback(notification)
        except Exception as e:
            # The item stays recorded as notified; delivery is the collaborator's concern
            self.stats["notification_failures"] += 1
            get_error_tracker().record_error(
                component="item.processor",
                category=ErrorCategory.NOTIFICATION,
                severity=ErrorSeverity.MEDIUM,
                message=f"Notification callback failed for item {notification.get('id')}",
                exception=e,
            )

    def get_stats(self) -> Dict[str, Any]:
        stats = dict(self.stats)
        stats["uptime_seconds"] = (datetime.now() - stats["start_time"]).total_seconds()
        stats["start_time"] = stats["start_time"].isoformat()
        if stats["last_match_at"] is not None:
            stats["last_match_at"] = stats["last_match_at"].isoformat()
        stats["notified_ids"] = len(self.ledger)
        stats["history_size"] = len(self.history)
        stats["rejections"] = self.engine.get_rejection_stats()
        stats["rules_version"] = self.rule_store.current.version
        return stats
