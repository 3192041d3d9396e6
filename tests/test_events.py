import pytest

from anet import events
from anet.events import AnetEvent, EventHandler, EventKind


class Collector(EventHandler):
    def __init__(self):
        self.received = []

    def on_event(self, event):
        self.received.append(event)


@pytest.fixture(autouse=True)
def _clean_handler(monkeypatch):
    monkeypatch.setattr(events, "_handler", None)


def test_status_reaches_handler():
    collector = Collector()
    assert events.set_handler(collector) is True
    events.status("VPN Tunnel UP")
    assert collector.received == [AnetEvent(EventKind.STATUS, "VPN Tunnel UP")]


def test_err_and_warn_kinds():
    collector = Collector()
    events.set_handler(collector)
    events.err("boom")
    events.warn("careful")
    assert [e.kind for e in collector.received] == [EventKind.ERROR, EventKind.WARN]
    assert [e.message for e in collector.received] == ["boom", "careful"]


def test_status_converts_to_string():
    collector = Collector()
    events.set_handler(collector)
    events.status(42)
    assert collector.received[0].message == "42"


def test_traffic_update_emit():
    collector = Collector()
    events.set_handler(collector)
    events.emit(AnetEvent(EventKind.TRAFFIC_UPDATE, rx=10, tx=20))
    event = collector.received[0]
    assert (event.kind, event.rx, event.tx) == (EventKind.TRAFFIC_UPDATE, 10, 20)


def test_second_handler_is_ignored():
    first = Collector()
    second = Collector()
    assert events.set_handler(first) is True
    assert events.set_handler(second) is False
    events.status("hello")
    assert len(first.received) == 1
    assert second.received == []


def test_events_before_handler_are_dropped():
    events.status("lost")
    collector = Collector()
    events.set_handler(collector)
    events.status("kept")
    assert [e.message for e in collector.received] == ["kept"]


def test_handler_is_abstract():
    with pytest.raises(TypeError):
        EventHandler()