"""
Entry point for the workbench runtime.
"""

from __future__ import annotations

import asyncio
import sys
from typing import List, Optional

from PySide6 import QtAsyncio
from PySide6.QtWidgets import QApplication

from workbench_core import logger as app_logger
from workbench_core.app import AppContext
from workbench_core.settings import SettingsManager

_LOGGER = app_logger.get_logger()


async def _start(context: AppContext) -> None:
    context.start()


def _request_shutdown(context: AppContext) -> Optional[asyncio.Future]:
    """Stop timers now and schedule the asynchronous part of shutdown."""
    context.stop()
    try:
        return asyncio.ensure_future(context.shutdown())
    except RuntimeError:
        _LOGGER.warning("No event loop available; channels were not drained on exit.")
        return None


def main() -> int:
    """Launch the Qt application with an asyncio-compatible event loop."""
    app_logger.configure()
    app = QApplication(sys.argv)
    settings = SettingsManager().read_settings()
    context = AppContext(settings=settings)

    shutdown: List[Optional[asyncio.Future]] = []
    app.aboutToQuit.connect(lambda: shutdown.append(_request_shutdown(context)))

    _LOGGER.info("Launching {} {}", settings.app_name, settings.current_version)
    QtAsyncio.run(_start(context), keep_running=True, handle_sigint=True)
    if shutdown and shutdown[0] is not None and not shutdown[0].done():
        _LOGGER.warning("Event loop exited before shutdown completed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
