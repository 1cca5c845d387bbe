"""
Same-process publish/subscribe façade over an ``EventRegistry``.
"""

from __future__ import annotations

from typing import Any

from workbench_core import logger as app_logger
from workbench_core.event_registry import EventRegistry, Handler, Subscription
from workbench_shared.events import EventKind, check_payload


class LocalDispatcher:
    """Validates payloads against their kind, then delivers synchronously."""

    def __init__(self, registry: EventRegistry) -> None:
        self._registry = registry
        self._logger = app_logger.get_logger()

    @property
    def registry(self) -> EventRegistry:
        return self._registry

    def subscribe(self, kind: EventKind, handler: Handler) -> Subscription:
        return self._registry.subscribe(kind, handler)

    def unsubscribe(self, kind: EventKind, handler: Handler) -> bool:
        return self._registry.unsubscribe(kind, handler)

    def publish(self, kind: EventKind, payload: Any = None) -> int:
        check_payload(kind, payload)
        delivered = self._registry.publish(kind, payload)
        self._logger.debug("Published {} to {} handler(s).", kind.value, delivered)
        return delivered
