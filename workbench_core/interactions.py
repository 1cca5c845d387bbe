"""
Confirmation dialogs, alerts and transient tips built on the local dispatcher.

A confirmation publishes a ``DialogRequest`` and hands back a future that
completes once a presenter answers with a matching ``DialogResult``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from workbench_core import logger as app_logger
from workbench_core.local_dispatcher import LocalDispatcher
from workbench_shared.events import (
    DialogAction,
    DialogRequest,
    DialogResult,
    EventKind,
    LoadingState,
    NotificationRequest,
)

TIP_TIMEOUT_MS = 4000


class Outcome(Enum):
    ACCEPTED = "accepted"
    DECLINED = "declined"


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    SUCCESS = "success"
    INFO = "info"


@dataclass(frozen=True)
class TipStyle:
    icon: str
    style_class: str
    timeout_ms: int = TIP_TIMEOUT_MS


TIP_STYLES: Dict[Severity, TipStyle] = {
    Severity.ERROR: TipStyle(icon="mdi-alert-circle-outline", style_class="bg-red-lighten-1"),
    Severity.WARNING: TipStyle(icon="mdi-alert-circle", style_class="bg-orange-darken-1"),
    Severity.SUCCESS: TipStyle(icon="mdi-check", style_class="bg-green-lighten-1"),
    Severity.INFO: TipStyle(icon="mdi-lightbulb-on-40", style_class="bg-secondary"),
}


@dataclass
class _OpenDialog:
    request: DialogRequest
    accept_label: Optional[str] = None
    future: Optional[asyncio.Future] = None


class Interactions:
    def __init__(self, dispatcher: LocalDispatcher) -> None:
        self._dispatcher = dispatcher
        self._logger = app_logger.get_logger()
        self._open: Dict[str, _OpenDialog] = {}
        self._subscription = dispatcher.subscribe(EventKind.DIALOG_RESULT, self._on_dialog_result)

    # -- confirmations -------------------------------------------------

    def confirm(self, title: str, text: str) -> "asyncio.Future[Outcome]":
        """
        Ask the user to confirm.

        The returned future resolves to ``Outcome.ACCEPTED`` only when the
        Confirm action is chosen; Cancel or a dismissal resolve it to
        ``Outcome.DECLINED``. Must be called with an event loop running.
        """
        request = DialogRequest(
            title=title,
            content=text,
            icon="mdi-alert-circle-outline",
            icon_color="yellow-darken-4",
            actions=[
                DialogAction("Cancel"),
                DialogAction("Confirm", style="primary"),
            ],
        )
        return self._open_confirmation(request, accept_label="Confirm")

    def confirm_system(self, text: str) -> "asyncio.Future[Outcome]":
        return self.confirm("System", text)

    def confirm_update_app(self, text: str) -> "asyncio.Future[Outcome]":
        request = DialogRequest(
            title="Install Update",
            content=text,
            icon="mdi-update",
            icon_color="green",
            actions=[
                DialogAction("Cancel"),
                DialogAction("Install", style="primary"),
            ],
        )
        return self._open_confirmation(request, accept_label="Install")

    def _open_confirmation(self, request: DialogRequest, *, accept_label: str) -> "asyncio.Future[Outcome]":
        future = asyncio.get_running_loop().create_future()
        self._open[request.request_id] = _OpenDialog(request, accept_label, future)
        future.add_done_callback(
            lambda done, request_id=request.request_id: self._on_confirmation_done(request_id, done)
        )
        self._dispatcher.publish(EventKind.DIALOG, request)
        return future

    # -- one-way dialogs -------------------------------------------------

    def show_content(self, content: str) -> DialogRequest:
        request = DialogRequest(title="Content", content=content, max_width=1200, close_button=True)
        return self._open_plain(request)

    def alert_error(self, text: str) -> DialogRequest:
        request = DialogRequest(
            title="Error",
            content=text,
            icon="mdi-alert-circle-outline",
            icon_color="red",
            actions=[DialogAction("Close")],
        )
        return self._open_plain(request)

    def _open_plain(self, request: DialogRequest) -> DialogRequest:
        self._open[request.request_id] = _OpenDialog(request)
        self._dispatcher.publish(EventKind.DIALOG, request)
        return request

    # -- tips and loading ------------------------------------------------

    def tip(self, severity: Severity, text: str) -> NotificationRequest:
        style = TIP_STYLES[severity]
        tip = NotificationRequest(
            content=text,
            icon=style.icon,
            style_class=style.style_class,
            timeout_ms=style.timeout_ms,
        )
        self._dispatcher.publish(EventKind.TIP, tip)
        return tip

    def tip_error(self, text: str) -> NotificationRequest:
        return self.tip(Severity.ERROR, text)

    def tip_warn(self, text: str) -> NotificationRequest:
        return self.tip(Severity.WARNING, text)

    def tip_success(self, text: str) -> NotificationRequest:
        return self.tip(Severity.SUCCESS, text)

    def tip_info(self, text: str) -> NotificationRequest:
        return self.tip(Severity.INFO, text)

    def loading(self, state: bool, text: Optional[str] = None) -> None:
        self._dispatcher.publish(EventKind.LOADING, LoadingState(state=state, text=text))

    # -- results ---------------------------------------------------------

    def pending_count(self) -> int:
        return len(self._open)

    def open_requests(self) -> List[DialogRequest]:
        return [entry.request for entry in self._open.values()]

    def _on_confirmation_done(self, request_id: str, future: asyncio.Future) -> None:
        if not future.cancelled():
            return
        entry = self._open.pop(request_id, None)
        if entry is not None:
            entry.request.visible = False
            self._logger.debug("Confirmation {} abandoned by its caller.", request_id)

    def _on_dialog_result(self, result: DialogResult) -> None:
        entry = self._open.pop(result.request_id, None)
        if entry is None:
            self._logger.debug("Ignoring result for unknown or closed dialog {}.", result.request_id)
            return

        entry.request.visible = False
        if entry.future is None or entry.future.done():
            return

        if result.action is not None and result.action not in entry.request.action_labels():
            self._logger.warning(
                "Dialog {} answered with unknown action {!r}; treating as declined.",
                result.request_id,
                result.action,
            )
        accepted = result.action is not None and result.action == entry.accept_label
        entry.future.set_result(Outcome.ACCEPTED if accepted else Outcome.DECLINED)
