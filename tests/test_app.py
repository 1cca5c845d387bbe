import asyncio

import pytest
from PySide6.QtCore import QCoreApplication

from conftest import EventLog, FakeChecker, FakeInstaller, FakeRelauncher, RecordingDiagnostics
from workbench_core.app import MAIN_WINDOW_LABEL, AppContext
from workbench_core.main import _request_shutdown
from workbench_core.settings import WorkbenchSettings
from workbench_shared.events import EventKind, SetSettingAnchor
from workbench_shared.manifest_schema import UpdateManifest


class RecordingBridge:
    def __init__(self):
        self.sent = []
        self.closed = False

    async def send(self, kind, payload):
        self.sent.append((kind, payload))

    async def aclose(self):
        self.closed = True


class MemoryWriter:
    def __init__(self):
        self.texts = []

    def write_text(self, text):
        self.texts.append(text)


@pytest.fixture(scope="module")
def qt_app():
    return QCoreApplication.instance() or QCoreApplication([])


@pytest.fixture
def context(qt_app):
    return AppContext(
        settings=WorkbenchSettings(auto_update_check=False),
        diagnostics=RecordingDiagnostics(),
        host_bridge=RecordingBridge(),
        checker=FakeChecker(None),
        installer=FakeInstaller(),
        relauncher=FakeRelauncher(),
        clipboard_writer=MemoryWriter(),
    )


def test_start_registers_main_window(context):
    context.start()

    assert context.windows.labels() == [MAIN_WINDOW_LABEL]
    context.stop()


def test_components_share_one_dispatcher(context):
    log = EventLog(context.dispatcher)

    context.clipboard.copy("key")

    assert log.kinds() == [EventKind.TIP]
    assert context.clipboard_writer.texts == ["key"]


def test_schedule_without_loop_is_recorded(context):
    assert context.schedule_update_check() is False
    assert context.diagnostics.labels() == ["app.update"]


@pytest.mark.asyncio
async def test_scheduled_update_check_runs_in_background(context):
    log = EventLog(context.dispatcher)

    assert context.schedule_update_check() is True
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert context.checker.calls == 1
    assert EventKind.TIP in log.kinds()


@pytest.mark.asyncio
async def test_shutdown_drains_channels_and_closes_bridge(context):
    context.start()
    context.global_channel.emit_global(EventKind.SET_SETTING_ANCHOR, SetSettingAnchor("update"))

    await context.shutdown()

    assert context.host_bridge.sent == [(EventKind.SET_SETTING_ANCHOR, SetSettingAnchor("update"))]
    assert context.host_bridge.closed is True


@pytest.mark.asyncio
async def test_shutdown_abandons_update_waiting_for_confirmation(qt_app):
    context = AppContext(
        settings=WorkbenchSettings(auto_update_check=False),
        diagnostics=RecordingDiagnostics(),
        host_bridge=RecordingBridge(),
        checker=FakeChecker(UpdateManifest(version="9.0.0")),
        installer=FakeInstaller(),
        relauncher=FakeRelauncher(),
        clipboard_writer=MemoryWriter(),
    )
    context.schedule_update_check(quiet=True)
    await asyncio.sleep(0)
    assert context.interactions.pending_count() == 1

    await context.shutdown()

    assert context.background_pending == 0
    assert context.interactions.pending_count() == 0
    assert not context.updater.running
    assert context.installer.installed == []


@pytest.mark.asyncio
async def test_quit_request_runs_full_shutdown(context):
    context.start()
    context.global_channel.emit_global(EventKind.CONFIRM_EXIT)

    pending = _request_shutdown(context)
    await pending

    assert context.host_bridge.sent == [(EventKind.CONFIRM_EXIT, None)]
    assert context.host_bridge.closed is True
