from datetime import datetime, timezone

import pytest

from workbench_shared.events import (
    PAYLOAD_TYPES,
    DialogAction,
    DialogRequest,
    EventKind,
    EventPayloadError,
    KeyEventType,
    KeyMonitorEvent,
    check_payload,
    to_wire,
)


def test_every_kind_has_a_schema_entry():
    assert set(PAYLOAD_TYPES) == set(EventKind)


def test_wire_names_follow_frontend_event_names():
    assert EventKind.CLOSE_TAB.value == "closeTab"
    assert EventKind.SNAPSHOT_STATE.value == "snapshot_state"
    assert EventKind.CONFIRM_EXIT.value == "confirm_exit"


def test_check_payload_rejects_unknown_kind():
    with pytest.raises(EventPayloadError):
        check_payload("loading", None)


def test_key_monitor_event_is_transported_unchanged():
    event = KeyMonitorEvent(
        session=2,
        key="/app/config",
        event_type=KeyEventType.VALUE_CHANGE,
        event_time=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        previous_value="old",
        current_value="new",
        read=False,
        id=11,
    )

    wire = to_wire(EventKind.KEY_MONITOR_EVENT, event)

    assert wire["event"] == "keyMonitorEvent"
    assert wire["payload"]["event_type"] == "ValueChange"
    assert wire["payload"]["event_time"] == "2024-05-01T12:00:00+00:00"
    assert wire["payload"]["current_value"] == "new"
    assert wire["payload"]["previous_formatted"] is None
    assert wire["payload"]["id"] == 11


def test_dialog_request_wire_form_has_no_callables():
    request = DialogRequest(title="System", content="Sure?", actions=[DialogAction("Cancel")])

    wire = to_wire(EventKind.DIALOG, request)

    assert wire["payload"]["actions"] == [{"label": "Cancel", "style": None}]
    assert wire["payload"]["request_id"] == request.request_id


def test_wire_form_without_payload():
    assert to_wire(EventKind.CONFIRM_EXIT) == {"event": "confirm_exit", "payload": None}


def test_dialog_requests_get_distinct_ids():
    assert DialogRequest("a", "b").request_id != DialogRequest("a", "b").request_id
