"""
Event kinds and the payload schema carried by each kind.

Every publish or emit is keyed by exactly one ``EventKind``. The payload for a
kind is an instance of the dataclass registered in ``PAYLOAD_TYPES`` (or
``None`` for kinds that carry nothing).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class EventKind(Enum):
    LOADING = "loading"
    DIALOG = "dialog"
    DIALOG_RESULT = "dialogResult"
    TIP = "tip"
    CLOSE_TAB = "closeTab"
    NEW_CONNECTION = "newConnection"
    SETTING_UPDATE = "settingUpdate"
    CONNECTION_IMPORTED = "connectionImported"
    SNAPSHOT_STATE = "snapshot_state"
    SNAPSHOT_CREATE = "snapshotCreate"
    CONFIRM_EXIT = "confirm_exit"
    EDIT_KEY_MONITOR = "editKeyMonitor"
    KEY_MONITOR_CONFIG_CHANGE = "keyMonitorConfigChange"
    KEY_MONITOR_EVENT = "keyMonitorEvent"
    SET_SETTING_ANCHOR = "setSettingAnchor"


class EventPayloadError(TypeError):
    """Raised when a payload does not match the schema of its event kind."""


class KeyEventType(Enum):
    REMOVE = "Remove"
    CREATE = "Create"
    LEASE_CHANGE = "LeaseChange"
    VALUE_CHANGE = "ValueChange"


@dataclass
class LoadingState:
    state: bool
    text: Optional[str] = None


@dataclass
class DialogAction:
    label: str
    style: Optional[str] = None


@dataclass
class DialogRequest:
    """
    A dialog to be shown by whichever presenter listens for ``EventKind.DIALOG``.

    The presenter answers with a ``DialogResult`` carrying ``request_id`` and the
    label of the chosen action, or ``action=None`` when the dialog was dismissed.
    """

    title: str
    content: str
    visible: bool = True
    icon: Optional[str] = None
    icon_color: Optional[str] = None
    max_width: Optional[int] = None
    close_button: bool = False
    actions: List[DialogAction] = field(default_factory=list)
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def action_labels(self) -> List[str]:
        return [action.label for action in self.actions]


@dataclass
class DialogResult:
    request_id: str
    action: Optional[str] = None

    @property
    def dismissed(self) -> bool:
        return self.action is None


@dataclass
class NotificationRequest:
    content: str
    icon: str
    style_class: str
    timeout_ms: int = 4000
    visible: bool = True


@dataclass
class CloseTab:
    session_id: int


@dataclass
class NewConnection:
    session_id: int
    name: str


@dataclass
class SettingUpdate:
    values: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ConnectionImported:
    names: List[str] = field(default_factory=list)


@dataclass
class SnapshotState:
    session_id: int
    name: str
    state: str
    error: Optional[str] = None


@dataclass
class SnapshotCreate:
    session_id: int
    name: str


@dataclass
class EditKeyMonitor:
    session_id: int
    key: str


@dataclass
class KeyMonitorConfigChange:
    session_id: int
    key: str
    config: Dict[str, Any] = field(default_factory=dict)


@dataclass
class KeyMonitorEvent:
    """Key change observed by the monitor subsystem; transported unchanged."""

    session: int
    key: str
    event_type: KeyEventType
    event_time: datetime
    previous_value: Any = None
    current_value: Any = None
    previous_formatted: Optional[str] = None
    current_formatted: Optional[str] = None
    read: Optional[bool] = None
    id: Optional[int] = None


@dataclass
class SetSettingAnchor:
    anchor: str


PAYLOAD_TYPES: Dict[EventKind, Optional[type]] = {
    EventKind.LOADING: LoadingState,
    EventKind.DIALOG: DialogRequest,
    EventKind.DIALOG_RESULT: DialogResult,
    EventKind.TIP: NotificationRequest,
    EventKind.CLOSE_TAB: CloseTab,
    EventKind.NEW_CONNECTION: NewConnection,
    EventKind.SETTING_UPDATE: SettingUpdate,
    EventKind.CONNECTION_IMPORTED: ConnectionImported,
    EventKind.SNAPSHOT_STATE: SnapshotState,
    EventKind.SNAPSHOT_CREATE: SnapshotCreate,
    EventKind.CONFIRM_EXIT: None,
    EventKind.EDIT_KEY_MONITOR: EditKeyMonitor,
    EventKind.KEY_MONITOR_CONFIG_CHANGE: KeyMonitorConfigChange,
    EventKind.KEY_MONITOR_EVENT: KeyMonitorEvent,
    EventKind.SET_SETTING_ANCHOR: SetSettingAnchor,
}


def check_payload(kind: EventKind, payload: Any) -> None:
    """Raise ``EventPayloadError`` unless ``payload`` fits the schema of ``kind``."""
    if not isinstance(kind, EventKind):
        raise EventPayloadError(f"Unknown event kind: {kind!r}")

    expected = PAYLOAD_TYPES[kind]
    if expected is None:
        if payload is not None:
            raise EventPayloadError(f"{kind.value} carries no payload, got {type(payload).__name__}.")
        return

    if not isinstance(payload, expected):
        raise EventPayloadError(
            f"{kind.value} expects {expected.__name__}, got {type(payload).__name__}."
        )


def to_wire(kind: EventKind, payload: Any = None) -> Dict[str, Any]:
    """Render an event as the JSON-compatible body sent across process/window boundaries."""
    return {"event": kind.value, "payload": _to_jsonable(payload)}


def _to_jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_to_jsonable(v) for v in value]
    return str(value)
