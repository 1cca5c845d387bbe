"""
Delivery of events to a specific window addressed by its label.

Policy: best-effort. Emitting to a label with no registered window delivers
nothing and is not an error. Windows are never created as a side effect of an
emission; they register themselves when they open.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from workbench_core import logger as app_logger
from workbench_core.diagnostics import DiagnosticSink, report
from workbench_core.event_registry import EventRegistry, Handler, Subscription
from workbench_core.global_channel import TaskTracker
from workbench_shared.events import EventKind, EventPayloadError, check_payload


class WindowHandle:
    """A logical window with its own subscriber registry."""

    def __init__(self, label: str, diagnostics: DiagnosticSink) -> None:
        self.label = label
        self._registry = EventRegistry(diagnostics, name=f"window[{label}]")

    def listen(self, kind: EventKind, handler: Handler) -> Subscription:
        return self._registry.subscribe(kind, handler)

    async def emit(self, kind: EventKind, payload: Any = None) -> int:
        return self._registry.publish(kind, payload)


class WindowRegistry:
    def __init__(self, diagnostics: DiagnosticSink) -> None:
        self._diagnostics = diagnostics
        self._windows: Dict[str, WindowHandle] = {}

    def register(self, label: str) -> WindowHandle:
        """Return the handle for ``label``, creating it when the window opens."""
        handle = self._windows.get(label)
        if handle is None:
            handle = WindowHandle(label, self._diagnostics)
            self._windows[label] = handle
        return handle

    def get(self, label: str) -> Optional[WindowHandle]:
        return self._windows.get(label)

    def remove(self, label: str) -> bool:
        return self._windows.pop(label, None) is not None

    def labels(self) -> List[str]:
        return list(self._windows)


class WindowChannel:
    def __init__(self, windows: WindowRegistry, diagnostics: DiagnosticSink) -> None:
        self._windows = windows
        self._diagnostics = diagnostics
        self._tracker = TaskTracker()
        self._logger = app_logger.get_logger()

    def emit_to_window(self, label: str, kind: EventKind, payload: Any = None) -> bool:
        """
        Schedule delivery to the window named ``label``.

        Returns whether a delivery was scheduled. A missing window or a missing
        event loop yields ``False``.
        """
        try:
            check_payload(kind, payload)
        except EventPayloadError as exc:
            report(self._diagnostics, "window.emit", exc, window=label, kind=str(kind))
            return False
        handle = self._windows.get(label)
        if handle is None:
            self._logger.debug("No window labelled {}; dropping {}.", label, kind.value)
            return False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            report(
                self._diagnostics,
                "window.emit",
                message="No running event loop; window emission dropped.",
                window=label,
                kind=kind.value,
            )
            return False

        self._tracker.track(loop.create_task(self._deliver(handle, kind, payload)))
        return True

    async def _deliver(self, handle: WindowHandle, kind: EventKind, payload: Any) -> None:
        try:
            await handle.emit(kind, payload)
        except Exception as exc:
            report(self._diagnostics, "window.emit", exc, window=handle.label, kind=kind.value)

    @property
    def pending(self) -> int:
        return self._tracker.pending

    async def drain(self) -> None:
        await self._tracker.drain()
