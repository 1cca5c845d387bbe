"""
Mapping from event kind to the ordered list of its subscribers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from workbench_core.diagnostics import DiagnosticSink, report
from workbench_shared.events import EventKind

Handler = Callable[[Any], None]


@dataclass(eq=False)
class Subscription:
    """Token for a single registration; ``cancel()`` removes exactly that one."""

    registry: "EventRegistry"
    kind: EventKind
    handler: Handler
    active: bool = True

    def cancel(self) -> bool:
        if not self.active:
            return False
        self.active = False
        return self.registry._remove_entry(self)


class EventRegistry:
    """
    Holds subscribers per event kind and delivers events to them synchronously.

    Handlers run in registration order on the publishing thread and receive the
    payload by reference. A handler that raises is reported to the diagnostic
    sink and the remaining handlers still run. Subscribing during a publish
    does not deliver the in-flight event to the new handler.
    """

    def __init__(self, diagnostics: DiagnosticSink, name: str = "local") -> None:
        self.name = name
        self._diagnostics = diagnostics
        self._entries: Dict[EventKind, List[Subscription]] = {}

    def subscribe(self, kind: EventKind, handler: Handler) -> Subscription:
        """Register ``handler`` for ``kind``. Repeated calls register it again."""
        entry = Subscription(registry=self, kind=kind, handler=handler)
        self._entries.setdefault(kind, []).append(entry)
        return entry

    def unsubscribe(self, kind: EventKind, handler: Handler) -> bool:
        """Remove the earliest registration of ``handler`` for ``kind``."""
        for entry in self._entries.get(kind, []):
            if entry.handler == handler:
                entry.active = False
                return self._remove_entry(entry)
        return False

    def publish(self, kind: EventKind, payload: Any = None) -> int:
        """Invoke every handler registered for ``kind``; returns how many were called."""
        snapshot = tuple(self._entries.get(kind, ()))
        delivered = 0
        for entry in snapshot:
            if not entry.active:
                continue
            delivered += 1
            try:
                entry.handler(payload)
            except Exception as exc:
                report(
                    self._diagnostics,
                    f"{self.name}.publish",
                    exc,
                    kind=kind.value,
                    handler=_describe(entry.handler),
                )
        return delivered

    def handler_count(self, kind: Optional[EventKind] = None) -> int:
        if kind is not None:
            return len(self._entries.get(kind, []))
        return sum(len(entries) for entries in self._entries.values())

    def clear(self) -> None:
        for entries in self._entries.values():
            for entry in entries:
                entry.active = False
        self._entries.clear()

    def _remove_entry(self, entry: Subscription) -> bool:
        entries = self._entries.get(entry.kind)
        if not entries:
            return False
        for index, candidate in enumerate(entries):
            if candidate is entry:
                del entries[index]
                if not entries:
                    self._entries.pop(entry.kind, None)
                return True
        return False


def _describe(handler: Handler) -> str:
    module = getattr(handler, "__module__", None) or "?"
    name = getattr(handler, "__qualname__", None) or repr(handler)
    return f"{module}.{name}"
