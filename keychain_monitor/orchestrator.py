"""
Main application orchestrator for the Keychain Monitor system.

This module wires the components together from configuration, feeds
item batches through the processing pipeline and manages startup,
configuration reloads and graceful shutdown.
"""

import asyncio
import json
import signal
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from .components.charm_table import CharmPriceTable
from .components.dedup_ledger import DeduplicationLedger
from .components.matching_engine import MatchingEngine
from .components.notification_history import NotificationHistory
from .components.price_comparator import PriceComparator
from .components.reference_prices import ReferencePriceProvider
from .interfaces import IConfigurationManager
from .models.config import Configuration
from .services.config_manager import ConfigurationManager
from .services.item_processor import ItemProcessor, NotificationCallback
from .services.rule_store_manager import RuleStoreManager
from .utils.error_handling import (
    ErrorCategory,
    ErrorSeverity,
    get_degradation_manager,
    get_error_tracker,
    with_error_handling,
)
from .utils.logging import get_logger, get_logging_stats, setup_logging


class ApplicationOrchestrator:
    """
    Coordinates the Keychain Monitor components.

    Batches arrive from outside (a listener, a replay file or stdin);
    the orchestrator owns the component lifecycle around them.
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        notification_callback: Optional[NotificationCallback] = None,
    ):
        """
        Initialize the application orchestrator.

        Args:
            config_path: Path to configuration file. If None, uses default paths.
            notification_callback: Receives each emitted notification payload.
        """
        self.logger = get_logger("orchestrator")

        self.config_path = config_path
        self.notification_callback = notification_callback
        self._running = False

        self.error_tracker = get_error_tracker()
        self.degradation_manager = get_degradation_manager()

        self._config_manager: Optional[IConfigurationManager] = None
        self._config: Optional[Configuration] = None
        self.charm_table: Optional[CharmPriceTable] = None
        self.rule_store: Optional[RuleStoreManager] = None
        self.reference_prices: Optional[ReferencePriceProvider] = None
        self.engine: Optional[MatchingEngine] = None
        self.processor: Optional[ItemProcessor] = None

        self._startup_time: Optional[datetime] = None
        self._batches_handled = 0

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        if sys.platform == "win32":
            signal.signal(signal.SIGINT, self._signal_handler)
            return

        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, self._signal_handler, signum, None)

    def _signal_handler(self, signum: int, frame) -> None:
        self.logger.info(
            "Received shutdown signal, initiating graceful shutdown",
            extra={"signal": signum},
        )
        asyncio.create_task(self.shutdown())

    @with_error_handling(
        component="orchestrator",
        category=ErrorCategory.SYSTEM,
        severity=ErrorSeverity.CRITICAL,
        fallback_value=False,
        suppress_exceptions=True,
    )
    async def initialize(self) -> bool:
        """
        Load configuration and build all components.

        Returns:
            True if initialization successful, False otherwise.
        """
        self._config_manager = ConfigurationManager(self.config_path)
        self._config = self._config_manager.load_config()

        setup_logging(log_dir=self._config.log_dir, log_level=self._config.log_level)
        self.logger = get_logger("orchestrator")
        self.logger.info(
            "Configuration loaded", extra={"summary": self._config.to_summary()}
        )

        self._initialize_components(self._config)

        self._startup_time = datetime.now()
        self._running = True
        self.logger.info("System initialization completed successfully")
        return True

    def _initialize_components(self, config: Configuration) -> None:
        """Build components in dependency order."""
        if config.charm_table_path:
            self.charm_table = CharmPriceTable.from_yaml(config.charm_table_path)
        else:
            self.charm_table = CharmPriceTable()
        self.logger.info(f"Charm price table loaded: {len(self.charm_table)} charms")

        self.rule_store = RuleStoreManager(config.rules, self.charm_table)

        self.reference_prices = ReferencePriceProvider(config.reference_prices)
        comparator = PriceComparator(self.reference_prices.get_table)
        self.engine = MatchingEngine(self.charm_table, comparator)

        self.processor = ItemProcessor(
            engine=self.engine,
            rule_store=self.rule_store,
            ledger=DeduplicationLedger(config.max_notified_ids),
            history=NotificationHistory(
                retention_minutes=config.history_retention_minutes,
                window_minutes=config.history_window_minutes,
            ),
            reference_prices=self.reference_prices,
            notification_callback=self.notification_callback,
        )
        self.logger.info("Item processor initialized")

    async def handle_batch(self, payloads: Any) -> List[Dict[str, Any]]:
        """
        Run one feed batch through the pipeline.

        Returns:
            Notification payloads emitted for the batch
        """
        if self.processor is None:
            raise RuntimeError("Orchestrator is not initialized")

        await self._check_config_reload()
        emitted = await self.processor.process_batch(payloads)
        self._batches_handled += 1

        if emitted:
            self.logger.info(
                f"Batch produced {len(emitted)} notifications",
                extra={"notification_count": len(emitted)},
            )
        return emitted

    async def replay(self, items_path: str) -> List[Dict[str, Any]]:
        """
        Replay a recorded feed file.

        A file holding one JSON document is one batch. Otherwise each line
        is parsed as its own batch (an array or a single item).
        """
        text = Path(items_path).read_text(encoding="utf-8")
        emitted: List[Dict[str, Any]] = []

        try:
            document = json.loads(text)
        except json.JSONDecodeError:
            document = None
        if document is not None:
            emitted.extend(await self.handle_batch(document))
            return emitted

        for batch in self._parse_lines(text.splitlines()):
            emitted.extend(await self.handle_batch(batch))
        return emitted

    async def consume_stream(self, stream: TextIO) -> int:
        """Process batches from a line-delimited JSON stream until EOF or shutdown."""
        loop = asyncio.get_running_loop()
        count = 0

        while self._running:
            line = await loop.run_in_executor(None, stream.readline)
            if not line:
                break
            for batch in self._parse_lines([line]):
                count += len(await self.handle_batch(batch))

        return count

    def _parse_lines(self, lines: List[str]) -> List[Any]:
        batches = []
        for number, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                batches.append(json.loads(line))
            except json.JSONDecodeError as e:
                self.error_tracker.record_error(
                    component="orchestrator",
                    category=ErrorCategory.DATA_VALIDATION,
                    severity=ErrorSeverity.LOW,
                    message=f"Skipping unparseable batch on line {number}: {e}",
                )
        return batches

    async def _check_config_reload(self) -> None:
        """Swap in new rules if the configuration file changed."""
        try:
            if not self._config_manager.reload_if_changed():
                return
        except OSError as e:
            self.logger.error(f"Error checking config reload: {e}")
            return

        new_config = self._config_manager.get_config()
        try:
            self.rule_store.replace_all(new_config.rules)
        except ValueError as e:
            self.logger.error(f"Reloaded rules rejected, keeping current rules: {e}")
            return

        self._config = new_config
        self.logger.info(
            "Configuration reloaded",
            extra={"rules_version": self.rule_store.current.version},
        )

    async def shutdown(self) -> None:
        """Gracefully shutdown the system."""
        if not self._running:
            return

        self.logger.info("Initiating graceful shutdown...")
        self._running = False

        if self.reference_prices is not None:
            self.reference_prices.close()

        uptime = datetime.now() - self._startup_time if self._startup_time else None
        self.logger.info(
            f"System shutdown complete. Uptime: {uptime}",
            extra={"stats": self.processor.get_stats() if self.processor else {}},
        )

    def get_system_status(self) -> Dict[str, Any]:
        """Get current system status information."""
        return {
            "running": self._running,
            "startup_time": self._startup_time.isoformat()
            if self._startup_time
            else None,
            "uptime": str(datetime.now() - self._startup_time)
            if self._startup_time
            else None,
            "config_loaded": self._config is not None,
            "batches_handled": self._batches_handled,
            "rules_version": self.rule_store.current.version if self.rule_store else None,
            "processing": self.processor.get_stats() if self.processor else None,
            "degraded_components": self.degradation_manager.get_all_degraded(),
            "errors": self.error_tracker.get_error_stats(),
            "logging": get_logging_stats(),
        }

    async def run(self, items_path: Optional[str] = None) -> None:
        """Run the complete application lifecycle."""
        try:
            if not await self.initialize():
                self.logger.error("System initialization failed")
                return

            self._setup_signal_handlers()

            if items_path:
                emitted = await self.replay(items_path)
                self.logger.info(f"Replay complete: {len(emitted)} notifications")
            else:
                await self.consume_stream(sys.stdin)

        except Exception as e:
            self.logger.error(f"Unexpected error in application: {e}", exc_info=True)
        finally:
            await self.shutdown()
