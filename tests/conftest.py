from typing import Any, List, Optional, Tuple

import pytest

from workbench_core.diagnostics import DiagnosticRecord
from workbench_core.event_registry import EventRegistry
from workbench_core.interactions import Interactions
from workbench_core.local_dispatcher import LocalDispatcher
from workbench_shared.events import DialogRequest, DialogResult, EventKind
from workbench_shared.manifest_schema import UpdateManifest


class RecordingDiagnostics:
    def __init__(self) -> None:
        self.records: List[DiagnosticRecord] = []

    def record(self, record: DiagnosticRecord) -> None:
        self.records.append(record)

    def labels(self) -> List[str]:
        return [r.label for r in self.records]


class EventLog:
    """Subscribes to every event kind and keeps them in publish order."""

    def __init__(self, dispatcher: LocalDispatcher) -> None:
        self.events: List[Tuple[EventKind, Any]] = []
        for kind in EventKind:
            dispatcher.subscribe(kind, lambda payload, kind=kind: self.events.append((kind, payload)))

    def of(self, kind: EventKind) -> List[Any]:
        return [payload for k, payload in self.events if k is kind]

    def kinds(self) -> List[EventKind]:
        return [k for k, _ in self.events]


class AutoPresenter:
    """Answers every dialog immediately with ``choice`` (``None`` dismisses)."""

    def __init__(self, dispatcher: LocalDispatcher, choice: Optional[str]) -> None:
        self.dispatcher = dispatcher
        self.choice = choice
        self.shown: List[DialogRequest] = []
        dispatcher.subscribe(EventKind.DIALOG, self._on_dialog)

    def _on_dialog(self, request: DialogRequest) -> None:
        self.shown.append(request)
        if not request.actions:
            return
        if self.choice is None or self.choice in request.action_labels():
            action = self.choice
        else:
            action = request.actions[0].label
        self.dispatcher.publish(EventKind.DIALOG_RESULT, DialogResult(request.request_id, action))


class FakeChecker:
    def __init__(self, manifest: Optional[UpdateManifest] = None, error: Optional[Exception] = None) -> None:
        self.manifest = manifest
        self.error = error
        self.calls = 0

    async def check(self) -> Optional[UpdateManifest]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.manifest


class FakeInstaller:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.installed: List[UpdateManifest] = []

    async def install(self, manifest: UpdateManifest) -> None:
        if self.error is not None:
            raise self.error
        self.installed.append(manifest)


class FakeRelauncher:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.calls = 0

    async def relaunch(self) -> None:
        self.calls += 1
        if self.error is not None:
            raise self.error


@pytest.fixture
def diagnostics() -> RecordingDiagnostics:
    return RecordingDiagnostics()


@pytest.fixture
def registry(diagnostics) -> EventRegistry:
    return EventRegistry(diagnostics)


@pytest.fixture
def dispatcher(registry) -> LocalDispatcher:
    return LocalDispatcher(registry)


@pytest.fixture
def event_log(dispatcher) -> EventLog:
    return EventLog(dispatcher)


@pytest.fixture
def interactions(dispatcher) -> Interactions:
    return Interactions(dispatcher)
