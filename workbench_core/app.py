"""
Application root context wiring the event layer, interactions and updater.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Optional

from PySide6.QtCore import QTimer

from workbench_core import logger as app_logger
from workbench_core.clipboard import ClipboardBridge, ClipboardWriter, QtClipboardWriter
from workbench_core.diagnostics import DiagnosticSink, LoguruDiagnostics, report
from workbench_core.event_registry import EventRegistry
from workbench_core.global_channel import GlobalChannel, HostBridge, HttpHostBridge, TaskTracker
from workbench_core.interactions import Interactions
from workbench_core.local_dispatcher import LocalDispatcher
from workbench_core.settings import WorkbenchSettings
from workbench_core.update_capabilities import HttpUpdateChecker, ProcessRelauncher, SignedPackageInstaller
from workbench_core.updater import Relauncher, UpdateChecker, UpdateInstaller, UpdateOrchestrator, UpdateResult
from workbench_core.window_channel import WindowChannel, WindowRegistry

MAIN_WINDOW_LABEL = "main"


@dataclass(eq=False)
class AppContext:
    """
    Owns the single event registry for the process and every component built
    on it. Components receive their collaborators from here explicitly.
    """

    settings: WorkbenchSettings = field(default_factory=WorkbenchSettings)
    diagnostics: Optional[DiagnosticSink] = None
    host_bridge: Optional[HostBridge] = None
    checker: Optional[UpdateChecker] = None
    installer: Optional[UpdateInstaller] = None
    relauncher: Optional[Relauncher] = None
    clipboard_writer: Optional[ClipboardWriter] = None

    def __post_init__(self) -> None:
        self._logger = app_logger.get_logger()
        if self.diagnostics is None:
            self.diagnostics = LoguruDiagnostics()

        self.registry = EventRegistry(self.diagnostics)
        self.dispatcher = LocalDispatcher(self.registry)
        self.global_channel = GlobalChannel(self._build_host_bridge(), self.diagnostics)
        self.windows = WindowRegistry(self.diagnostics)
        self.window_channel = WindowChannel(self.windows, self.diagnostics)
        self.interactions = Interactions(self.dispatcher)
        self.clipboard = ClipboardBridge(
            self.clipboard_writer or QtClipboardWriter(),
            self.interactions,
            self.diagnostics,
        )
        installer = self.installer or self._default_installer()
        self.updater = UpdateOrchestrator(
            self.interactions,
            self.checker or self._default_checker(),
            installer,
            self.relauncher or self._default_relauncher(installer),
            self.diagnostics,
            app_name=self.settings.app_name,
            release_page=self.settings.release_page,
        )

        self._background = TaskTracker()
        self._update_timer = QTimer()
        self._update_timer.setInterval(max(1, self.settings.check_interval_minutes) * 60 * 1000)
        self._update_timer.timeout.connect(self._on_update_timer)
        self._started = False

    def _build_host_bridge(self) -> HostBridge:
        if self.host_bridge is None:
            self.host_bridge = HttpHostBridge(self.settings.host_url)
        return self.host_bridge

    def _default_checker(self) -> UpdateChecker:
        return HttpUpdateChecker(
            self.settings.update_endpoint,
            self.settings.current_version,
            target=self.settings.update_target,
        )

    def _default_relauncher(self, installer: UpdateInstaller) -> Relauncher:
        if isinstance(installer, SignedPackageInstaller):
            return ProcessRelauncher(staged=lambda: installer.installed_path)
        return ProcessRelauncher()

    def _default_installer(self) -> UpdateInstaller:
        return SignedPackageInstaller(
            self.settings.update_public_key,
            target=self.settings.update_target,
            staging_dir=self.settings.staging_dir,
        )

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        self.windows.register(MAIN_WINDOW_LABEL)
        self._logger.info(
            "Starting {} {} (auto update check: {}).",
            self.settings.app_name,
            self.settings.current_version,
            self.settings.auto_update_check,
        )
        if self.settings.auto_update_check:
            self._update_timer.start()
            self.schedule_update_check(quiet=True)

    def schedule_update_check(self, *, quiet: bool = False) -> bool:
        """Start an update run in the background; returns whether it was scheduled."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            report(self.diagnostics, "app.update", message="No running event loop; update check skipped.")
            return False
        self._background.track(loop.create_task(self._run_update(quiet)))
        return True

    async def _run_update(self, quiet: bool) -> UpdateResult:
        result = await self.updater.check_and_install(quiet=quiet)
        self._logger.info("Update run finished: {}", result.value)
        return result

    def _on_update_timer(self) -> None:
        self.schedule_update_check(quiet=True)

    @property
    def background_pending(self) -> int:
        return self._background.pending

    def stop(self) -> None:
        self._update_timer.stop()
        self._started = False

    async def shutdown(self) -> None:
        self._logger.info("Shutting down {}.", self.settings.app_name)
        self.stop()
        cancelled = self._background.cancel()
        if cancelled:
            self._logger.info("Cancelled {} background update run(s).", cancelled)
        await self._background.drain()
        await self.updater.wait_finished()
        await self.global_channel.drain()
        await self.window_channel.drain()
        aclose = getattr(self.host_bridge, "aclose", None)
        if aclose is not None:
            await aclose()
