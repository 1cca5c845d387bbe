"""
Self-update workflow: check, confirm, install, relaunch.

Each stage that raises a loading indicator clears it before the workflow ends,
on every path. Failures inside a stage become a user-facing notification plus
a diagnostic record; they never propagate to the caller.
"""

from __future__ import annotations

import asyncio
import html
from enum import Enum
from typing import Optional, Protocol

from workbench_core import logger as app_logger
from workbench_core.diagnostics import DiagnosticSink, report
from workbench_core.interactions import Interactions, Outcome
from workbench_shared.manifest_schema import UpdateManifest

CHECKING_TEXT = "Checking for updates..."
INSTALLING_TEXT = "Installing package..."
RESTARTING_TEXT = "Restarting..."
LATEST_VERSION_TEXT = "You are already the latest version"
RELAUNCH_FAILED_TEXT = "Unable to relaunch, please relaunch manually."
DEFAULT_RELEASE_PAGE = "https://github.com/tzfun/etcd-workbench/releases/tag/App-{version}"


class UpdateError(RuntimeError):
    """Raised by update capabilities when a stage cannot complete."""


class UpdateChecker(Protocol):
    async def check(self) -> Optional[UpdateManifest]:
        """Return the manifest of a newer release, or ``None`` when up to date."""
        ...


class UpdateInstaller(Protocol):
    async def install(self, manifest: UpdateManifest) -> None:
        ...


class Relauncher(Protocol):
    async def relaunch(self) -> None:
        ...


class UpdateResult(Enum):
    UP_TO_DATE = "up_to_date"
    CHECK_FAILED = "check_failed"
    DECLINED = "declined"
    INSTALL_FAILED = "install_failed"
    RELAUNCH_FAILED = "relaunch_failed"
    RELAUNCHED = "relaunched"
    BUSY = "busy"


class UpdateOrchestrator:
    def __init__(
        self,
        interactions: Interactions,
        checker: UpdateChecker,
        installer: UpdateInstaller,
        relauncher: Relauncher,
        diagnostics: DiagnosticSink,
        *,
        app_name: str = "Etcd Workbench",
        release_page: str = DEFAULT_RELEASE_PAGE,
    ) -> None:
        self._interactions = interactions
        self._checker = checker
        self._installer = installer
        self._relauncher = relauncher
        self._diagnostics = diagnostics
        self._app_name = app_name
        self._release_page = release_page
        self._running = False
        self._finishing: Optional[asyncio.Future] = None
        self._logger = app_logger.get_logger()

    @property
    def running(self) -> bool:
        return self._running

    async def wait_finished(self) -> None:
        """Wait for an install that has already started, if any."""
        finishing = self._finishing
        if finishing is not None:
            await asyncio.shield(finishing)

    def build_update_message(self, manifest: UpdateManifest) -> str:
        version = html.escape(manifest.version)
        link = html.escape(self._release_page.format(version=manifest.version), quote=True)
        return (
            f'{html.escape(self._app_name)} <a href="{link}" target="_blank" '
            f'class="text-green font-weight-bold">{version}</a> is now available.'
            "</br></br>Do you want to download and install it now?"
        )

    async def check_and_install(self, *, quiet: bool = False) -> UpdateResult:
        """
        Run one update attempt.

        ``quiet`` is used by periodic checks: the check stage shows no loading
        indicator and reports neither "up to date" nor check failures to the user.

        Cancelling the caller before the user accepts ends the run. Once the
        install starts it runs to completion in its own task, relaunch included.
        """
        if self._running:
            self._logger.info("Update workflow already running; ignoring request.")
            return UpdateResult.BUSY

        self._running = True
        handed_off = False
        try:
            manifest = await self._check(quiet)
            if isinstance(manifest, UpdateResult):
                return manifest

            outcome = await self._interactions.confirm_update_app(self.build_update_message(manifest))
            if outcome is not Outcome.ACCEPTED:
                self._logger.info("User declined update to {}.", manifest.version)
                return UpdateResult.DECLINED

            self._finishing = asyncio.ensure_future(self._install_and_relaunch(manifest))
            handed_off = True
            return await asyncio.shield(self._finishing)
        finally:
            if not handed_off:
                self._running = False

    async def _check(self, quiet: bool):
        if not quiet:
            self._interactions.loading(True, CHECKING_TEXT)
        failure: Optional[Exception] = None
        manifest: Optional[UpdateManifest] = None
        try:
            manifest = await self._checker.check()
        except Exception as exc:
            failure = exc
        finally:
            if not quiet:
                self._interactions.loading(False)

        if failure is not None:
            report(self._diagnostics, "update.check", failure)
            if not quiet:
                self._interactions.tip_error(str(failure) or type(failure).__name__)
            return UpdateResult.CHECK_FAILED

        if manifest is None:
            self._logger.info("No update available.")
            if not quiet:
                self._interactions.tip_success(LATEST_VERSION_TEXT)
            return UpdateResult.UP_TO_DATE

        self._logger.info("Update {} available.", manifest.version)
        return manifest

    async def _install_and_relaunch(self, manifest: UpdateManifest) -> UpdateResult:
        try:
            if not await self._install(manifest):
                return UpdateResult.INSTALL_FAILED
            return await self._relaunch()
        finally:
            self._running = False
            self._finishing = None

    async def _install(self, manifest: UpdateManifest) -> bool:
        self._interactions.loading(True, INSTALLING_TEXT)
        failure: Optional[Exception] = None
        try:
            await self._installer.install(manifest)
        except Exception as exc:
            failure = exc
        finally:
            self._interactions.loading(False)

        if failure is not None:
            report(self._diagnostics, "update.install", failure, version=manifest.version)
            self._interactions.tip_error(f"Unable to download: {failure}")
            return False
        self._logger.info("Installed update {}.", manifest.version)
        return True

    async def _relaunch(self) -> UpdateResult:
        self._interactions.loading(True, RESTARTING_TEXT)
        try:
            await self._relauncher.relaunch()
        except Exception as exc:
            report(self._diagnostics, "update.relaunch", exc)
            self._interactions.alert_error(RELAUNCH_FAILED_TEXT)
            return UpdateResult.RELAUNCH_FAILED
        finally:
            self._interactions.loading(False)
        return UpdateResult.RELAUNCHED
