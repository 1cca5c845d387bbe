import pytest

from workbench_core.clipboard import COPIED_TEXT, COPY_FAILED_TEXT, ClipboardBridge
from workbench_core.interactions import TIP_STYLES, Severity
from workbench_shared.events import EventKind


class MemoryWriter:
    def __init__(self, error=None):
        self.texts = []
        self.error = error

    def write_text(self, text):
        if self.error is not None:
            raise self.error
        self.texts.append(text)


def test_copy_success_shows_copied_tip(interactions, diagnostics, event_log):
    writer = MemoryWriter()
    bridge = ClipboardBridge(writer, interactions, diagnostics)

    assert bridge.copy("etcd://localhost:2379") is True

    assert writer.texts == ["etcd://localhost:2379"]
    [tip] = event_log.of(EventKind.TIP)
    assert tip.content == COPIED_TEXT
    assert tip.style_class == TIP_STYLES[Severity.SUCCESS].style_class


def test_copy_failure_shows_error_tip_and_records(interactions, diagnostics, event_log):
    bridge = ClipboardBridge(MemoryWriter(error=RuntimeError("clipboard locked")), interactions, diagnostics)

    assert bridge.copy("value") is False

    [tip] = event_log.of(EventKind.TIP)
    assert tip.content == COPY_FAILED_TEXT
    assert tip.style_class == TIP_STYLES[Severity.ERROR].style_class
    assert diagnostics.labels() == ["clipboard.write"]
    assert diagnostics.records[0].message == "clipboard locked"


@pytest.mark.parametrize("value, expected", [(42, "42"), (3.5, "3.5"), (None, "None")])
def test_non_text_values_are_coerced(interactions, diagnostics, value, expected):
    writer = MemoryWriter()

    ClipboardBridge(writer, interactions, diagnostics).copy(value)

    assert writer.texts == [expected]
