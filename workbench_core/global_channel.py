"""
Fire-and-forget emission of events to the host process.

The caller never observes the outcome: sends run as tasks on the current event
loop and any failure is handed to the diagnostic sink.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Protocol, Set

import httpx

from workbench_core import logger as app_logger
from workbench_core.diagnostics import DiagnosticSink, report
from workbench_shared.events import EventKind, EventPayloadError, check_payload, to_wire


class HostBridge(Protocol):
    async def send(self, kind: EventKind, payload: Any) -> None:
        ...


class HttpHostBridge:
    """Posts events as JSON to the host process' ``/event`` endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def send(self, kind: EventKind, payload: Any) -> None:
        client = await self._ensure_client()
        response = await client.post(f"{self._base_url}/event", json=to_wire(kind, payload))
        response.raise_for_status()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class TaskTracker:
    """Keeps references to in-flight delivery tasks until they settle."""

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    def track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel(self) -> int:
        tasks = [task for task in self._tasks if not task.done()]
        for task in tasks:
            task.cancel()
        return len(tasks)


class GlobalChannel:
    def __init__(self, bridge: HostBridge, diagnostics: DiagnosticSink) -> None:
        self._bridge = bridge
        self._diagnostics = diagnostics
        self._tracker = TaskTracker()
        self._logger = app_logger.get_logger()

    def emit_global(self, kind: EventKind, payload: Any = None) -> None:
        """Schedule delivery to the host process and return immediately."""
        try:
            check_payload(kind, payload)
        except EventPayloadError as exc:
            report(self._diagnostics, "global.emit", exc, kind=str(kind))
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            report(
                self._diagnostics,
                "global.emit",
                message="No running event loop; global emission dropped.",
                kind=kind.value,
            )
            return
        self._tracker.track(loop.create_task(self._send(kind, payload)))

    async def _send(self, kind: EventKind, payload: Any) -> None:
        try:
            await self._bridge.send(kind, payload)
            self._logger.debug("Global emission of {} delivered.", kind.value)
        except Exception as exc:
            report(self._diagnostics, "global.emit", exc, kind=kind.value)

    @property
    def pending(self) -> int:
        return self._tracker.pending

    async def drain(self) -> None:
        """Wait for every scheduled emission to settle."""
        await self._tracker.drain()
