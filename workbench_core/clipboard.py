"""
Clipboard writes with success/failure tips.
"""

from __future__ import annotations

from typing import Any, Protocol

from PySide6.QtGui import QGuiApplication

from workbench_core.diagnostics import DiagnosticSink, report
from workbench_core.interactions import Interactions

COPIED_TEXT = "Copied"
COPY_FAILED_TEXT = "Can not write to clipboard"


class ClipboardWriter(Protocol):
    def write_text(self, text: str) -> None:
        ...


class QtClipboardWriter:
    def write_text(self, text: str) -> None:
        app = QGuiApplication.instance()
        if app is None:
            raise RuntimeError("No running Qt application; clipboard unavailable.")
        QGuiApplication.clipboard().setText(text)


class ClipboardBridge:
    def __init__(self, writer: ClipboardWriter, interactions: Interactions, diagnostics: DiagnosticSink) -> None:
        self._writer = writer
        self._interactions = interactions
        self._diagnostics = diagnostics

    def copy(self, value: Any) -> bool:
        text = value if isinstance(value, str) else str(value)
        try:
            self._writer.write_text(text)
        except Exception as exc:
            report(self._diagnostics, "clipboard.write", exc)
            self._interactions.tip_error(COPY_FAILED_TEXT)
            return False
        self._interactions.tip_success(COPIED_TEXT)
        return True
