"""
Diagnostic sink for failures that are recorded but never surfaced to a caller.

Fire-and-forget channels, misbehaving event handlers and failed workflow stages
all report here. The sink is passed explicitly to every component so tests can
observe what was recorded.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from workbench_core import logger as app_logger


@dataclass
class DiagnosticRecord:
    label: str
    message: str
    exception_type: Optional[str] = None
    traceback: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)


class DiagnosticSink(Protocol):
    def record(self, record: DiagnosticRecord) -> None:
        ...


class LoguruDiagnostics:
    """Writes diagnostic records to the application log."""

    def __init__(self, logger=None) -> None:
        self._logger = logger or app_logger.get_logger()

    def record(self, record: DiagnosticRecord) -> None:
        bound = self._logger.bind(label=record.label, **record.context)
        if record.exception_type:
            bound.error("[{}] {}: {}", record.label, record.exception_type, record.message)
            if record.traceback:
                bound.debug("[{}] traceback:\n{}", record.label, record.traceback)
        else:
            bound.warning("[{}] {}", record.label, record.message)


def report(
    sink: DiagnosticSink,
    label: str,
    exc: Optional[BaseException] = None,
    message: Optional[str] = None,
    **context: Any,
) -> DiagnosticRecord:
    """Build a record for ``exc`` (or a plain message) and hand it to ``sink``."""
    if exc is not None:
        text = message or str(exc).strip() or "Unknown error (no message)"
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        record = DiagnosticRecord(
            label=label,
            message=text,
            exception_type=type(exc).__name__,
            traceback=trace,
            context=dict(context),
        )
    else:
        record = DiagnosticRecord(label=label, message=message or "", context=dict(context))

    try:
        sink.record(record)
    except Exception as fallback:  # pragma: no cover
        app_logger.get_logger().error("Failed to record diagnostic for {}: {}", label, fallback)
    return record
