"""
Main entry point for the Keychain Monitor system.

Usage:
    python -m keychain_monitor.main [config_path] [items_path]

Without an items file, batches are read as JSON lines from stdin.
Notifications are written to stdout as JSON lines.
"""

import asyncio
import json
import sys
from typing import Any, Dict, Optional

from .orchestrator import ApplicationOrchestrator
from .utils.logging import get_logger


def print_notification(notification: Dict[str, Any]) -> None:
    print(json.dumps(notification, default=str), flush=True)


async def async_main(config_path: Optional[str] = None, items_path: Optional[str] = None):
    """Async main application entry point."""
    logger = get_logger("main")

    logger.info(
        "Starting Keychain Monitor system",
        extra={"config_path": config_path, "items_path": items_path},
    )

    try:
        orchestrator = ApplicationOrchestrator(
            config_path, notification_callback=print_notification
        )
        await orchestrator.run(items_path)

    except Exception as e:
        logger.error("Application failed", extra={"error": str(e)}, exc_info=True)
        sys.exit(1)


def main():
    """Main application entry point."""
    config_path = sys.argv[1] if len(sys.argv) > 1 else None
    items_path = sys.argv[2] if len(sys.argv) > 2 else None

    try:
        asyncio.run(async_main(config_path, items_path))
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
