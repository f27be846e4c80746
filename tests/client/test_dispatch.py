"""Tests for event dispatch."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from chatsync.client.dispatch import DispatchStats, Dispatcher, Observer
from chatsync.client.events import (
    InviteEvent,
    RoomStateEvent,
    TimelineEvent,
    decode_invite_event,
    decode_login_response,
    decode_state_event,
    decode_timeline_event,
)


class RecordingObserver(Observer):
    """Observer that records every call into a shared log."""

    def __init__(self, name: str, log: list[tuple[str, str, str, Any]]) -> None:
        self.name = name
        self.log = log

    def on_timeline(self, event: TimelineEvent, room_id: str) -> None:
        self.log.append((self.name, "timeline", room_id, event.raw))

    def on_state(self, event: RoomStateEvent, room_id: str) -> None:
        self.log.append((self.name, "state", room_id, event.raw))

    def on_invite(self, event: InviteEvent, room_id: str) -> None:
        self.log.append((self.name, "invite", room_id, event.raw))


class FailingObserver(Observer):
    """Observer whose handlers always raise."""

    def __init__(self) -> None:
        self.calls = 0

    def on_timeline(self, event: TimelineEvent, room_id: str) -> None:
        self.calls += 1
        raise OSError("disk full")

    def on_state(self, event: RoomStateEvent, room_id: str) -> None:
        self.calls += 1
        raise ValueError("bad state")


class TestObserverDefaults:
    """Tests for the Observer base class."""

    def test_default_handlers_do_nothing(self) -> None:
        observer = Observer()
        observer.on_timeline(decode_timeline_event({}), "!r:x")
        observer.on_state(decode_state_event({}), "!r:x")
        observer.on_invite(decode_invite_event({}), "!r:x")


class TestNotify:
    """Tests for Dispatcher.notify."""

    @pytest.mark.parametrize(
        ("decode", "handler"),
        [
            (decode_timeline_event, "timeline"),
            (decode_state_event, "state"),
            (decode_invite_event, "invite"),
        ],
    )
    def test_routes_by_event_kind(self, decode: Any, handler: str) -> None:
        log: list[tuple[str, str, str, Any]] = []
        observer = RecordingObserver("o", log)
        tree = {"type": "m.test"}

        Dispatcher().notify(observer, decode(tree), "!r:x")

        assert log == [("o", handler, "!r:x", tree)]

    def test_rejects_non_dispatchable_view(self) -> None:
        with pytest.raises(TypeError):
            Dispatcher().notify(Observer(), decode_login_response({}), "!r:x")


class TestDispatch:
    """Tests for Dispatcher.dispatch."""

    def test_registration_order(self) -> None:
        log: list[tuple[str, str, str, Any]] = []
        dispatcher = Dispatcher()
        for name in ("first", "second", "third"):
            dispatcher.register(RecordingObserver(name, log))

        dispatcher.dispatch(decode_timeline_event({}), "!r:x")

        assert [entry[0] for entry in log] == ["first", "second", "third"]

    def test_observers_from_constructor(self) -> None:
        log: list[tuple[str, str, str, Any]] = []
        a = RecordingObserver("a", log)
        b = RecordingObserver("b", log)
        dispatcher = Dispatcher([a, b])
        assert dispatcher.observers == (a, b)

    def test_failure_is_isolated(self, caplog: pytest.LogCaptureFixture) -> None:
        """A failing observer should not stop delivery to the others."""
        log: list[tuple[str, str, str, Any]] = []
        failing = FailingObserver()
        dispatcher = Dispatcher(
            [RecordingObserver("before", log), failing, RecordingObserver("after", log)]
        )

        with caplog.at_level(logging.ERROR, logger="chatsync.client.dispatch"):
            delivered = dispatcher.dispatch(decode_timeline_event({}), "!r:x")

        assert delivered == 2
        assert failing.calls == 1
        assert [entry[0] for entry in log] == ["before", "after"]
        assert "FailingObserver failed" in caplog.text

    def test_failure_does_not_affect_next_event(self) -> None:
        log: list[tuple[str, str, str, Any]] = []
        dispatcher = Dispatcher([FailingObserver(), RecordingObserver("ok", log)])

        dispatcher.dispatch(decode_timeline_event({}), "!r:x")
        dispatcher.dispatch(decode_state_event({}), "!r:x")

        assert [entry[1] for entry in log] == ["timeline", "state"]

    def test_stats(self) -> None:
        log: list[tuple[str, str, str, Any]] = []
        dispatcher = Dispatcher([RecordingObserver("ok", log), FailingObserver()])

        dispatcher.dispatch(decode_timeline_event({}), "!r:x")
        dispatcher.dispatch(decode_invite_event({}), "!r:x")

        # FailingObserver has no invite handler, so the second event succeeds
        assert dispatcher.stats == DispatchStats(events=2, delivered=3, failed=1)

    def test_stats_reset(self) -> None:
        stats = DispatchStats(events=3, delivered=2, failed=1)
        stats.reset()
        assert stats == DispatchStats()

    def test_unregister(self) -> None:
        log: list[tuple[str, str, str, Any]] = []
        observer = RecordingObserver("gone", log)
        dispatcher = Dispatcher([observer])

        dispatcher.unregister(observer)
        dispatcher.unregister(observer)
        dispatcher.dispatch(decode_timeline_event({}), "!r:x")

        assert log == []

    def test_no_observers(self) -> None:
        assert Dispatcher().dispatch(decode_timeline_event({}), "!r:x") == 0
