from __future__ import annotations

import threading

import pytest


def test_publish_subscribe_multiple_subscribers(bus):
    got1 = []
    got2 = []

    bus.subscribe("message", got1.append)
    bus.subscribe("message", got2.append)

    payload = {"message": "hello"}
    delivered = bus.publish("message", payload)
    assert delivered == 2
    assert got1 == [payload]
    assert got2 == [payload]
    assert got1[0] is got2[0]


def test_handlers_run_in_subscription_order(bus):
    order = []
    bus.subscribe("message", lambda _p: order.append("first"))
    bus.subscribe("message", lambda _p: order.append("second"))
    bus.subscribe("message", lambda _p: order.append("third"))
    bus.publish("message", None)
    assert order == ["first", "second", "third"]


def test_publish_without_subscribers_is_noop(bus):
    assert bus.publish("message", {"message": "nobody listening"}) == 0
    st = bus.get_stats()
    assert st["delivered_total"] == 0
    assert st["handler_errors_total"] == 0


def test_kinds_are_isolated(bus):
    got = []
    bus.subscribe("message", got.append)
    bus.publish("sampler.tick", 1)
    bus.publish("message", 2)
    assert got == [2]


def test_duplicate_handlers_both_invoked(bus):
    got = []
    bus.subscribe("message", got.append)
    bus.subscribe("message", got.append)
    bus.publish("message", "x")
    assert got == ["x", "x"]


def test_handler_exception_isolated():
    from memwatch.core.events.bus import EventBus
    from tests.helpers.fakes import RecordingErrorReporter

    reporter = RecordingErrorReporter()
    bus = EventBus(error_reporter=reporter)
    ok = {"before": 0, "after": 0}

    def good_before(_ev):  # noqa: ANN001
        ok["before"] += 1

    def bad(_ev):  # noqa: ANN001
        raise RuntimeError("boom")

    def good_after(_ev):  # noqa: ANN001
        ok["after"] += 1

    bus.subscribe("message", good_before)
    bus.subscribe("message", bad)
    bus.subscribe("message", good_after)
    delivered = bus.publish("message", {"message": "m"})

    assert delivered == 2
    assert ok == {"before": 1, "after": 1}
    assert bus.get_stats()["handler_errors_total"] == 1
    assert len(reporter.written) == 1
    subsystem, err, cause = reporter.written[0]
    assert subsystem == "events"
    assert err.code == "dispatch_subscriber_failure"
    assert isinstance(cause, RuntimeError)


def test_handler_failure_written_to_error_file(tmp_path):
    from memwatch.core.error_reporter import ErrorReporter
    from memwatch.core.events.bus import EventBus
    from tests.helpers.log_assertions import read_jsonl

    errors = tmp_path / "errors.jsonl"
    bus = EventBus(error_reporter=ErrorReporter(path=str(errors)))

    def bad(_ev):  # noqa: ANN001
        raise OSError("disk full")

    bus.subscribe("message", bad)
    bus.publish("message", {"message": "m"})
    rows = read_jsonl(str(errors))
    assert len(rows) == 1
    assert rows[0]["subsystem"] == "events"
    assert rows[0]["error_code"] == "dispatch_subscriber_failure"
    assert rows[0]["safe_context"]["kind"] == "message"


def test_unsubscribe_stops_delivery(bus):
    got = []
    handle = bus.subscribe("message", got.append)
    bus.publish("message", 1)
    assert bus.unsubscribe(handle) is True
    bus.publish("message", 2)
    bus.publish("message", 3)
    assert got == [1]
    assert bus.get_stats()["subscribers"] == 0


def test_unsubscribe_unknown_handle_returns_false(bus):
    handle = bus.subscribe("message", lambda _p: None)
    assert bus.unsubscribe(handle) is True
    assert bus.unsubscribe(handle) is False


def test_unsubscribe_removes_only_that_registration(bus):
    got = []
    first = bus.subscribe("message", got.append)
    bus.subscribe("message", got.append)
    bus.unsubscribe(first)
    bus.publish("message", "x")
    assert got == ["x"]


def test_unsubscribe_during_dispatch_does_not_skip_scheduled_handlers(bus):
    seen = []
    handles = {}

    def first(p):  # noqa: ANN001
        seen.append(("first", p))
        bus.unsubscribe(handles["second"])

    def second(p):  # noqa: ANN001
        seen.append(("second", p))

    handles["first"] = bus.subscribe("message", first)
    handles["second"] = bus.subscribe("message", second)

    bus.publish("message", 1)
    bus.publish("message", 2)
    assert seen == [("first", 1), ("second", 1), ("first", 2)]


def test_subscribe_during_dispatch_applies_to_next_publish(bus):
    late = []

    def first(_p):  # noqa: ANN001
        if not late:
            bus.subscribe("message", late.append)

    bus.subscribe("message", first)
    bus.publish("message", "a")
    assert late == []
    bus.publish("message", "b")
    assert late == ["b"]


def test_handler_may_publish_reentrantly(bus):
    seen = []
    bus.subscribe("outer", lambda p: bus.publish("inner", p + 1))
    bus.subscribe("inner", seen.append)
    bus.publish("outer", 1)
    assert seen == [2]


@pytest.mark.parametrize("kind", ["", " ", "has space", "*", "1message", None, 5])
def test_subscribe_rejects_invalid_kind(bus, kind):
    from memwatch.core.errors import InvalidEventKindError

    with pytest.raises(InvalidEventKindError):
        bus.subscribe(kind, lambda _p: None)


def test_subscribe_rejects_non_callable(bus):
    with pytest.raises(ValueError):
        bus.subscribe("message", "not callable")  # type: ignore[arg-type]


def test_disabled_bus_drops_publishes():
    from memwatch.core.config.models import EventBusConfig
    from memwatch.core.events.bus import EventBus

    bus = EventBus(cfg=EventBusConfig(enabled=False))
    got = []
    bus.subscribe("message", got.append)
    assert bus.publish("message", 1) == 0
    bus.set_enabled(True)
    assert bus.publish("message", 2) == 1
    assert got == [2]


def test_stats_and_subscriber_listing(bus):
    def sink(_p):  # noqa: ANN001
        return None

    bus.subscribe("message", sink)
    bus.subscribe("sampler.tick", sink)
    bus.publish("message", 1)
    bus.publish("message", 2)
    bus.publish("sampler.tick", 3)

    st = bus.get_stats()
    assert st["published_total"] == 3
    assert st["delivered_total"] == 3
    assert st["per_kind_published"] == {"message": 2, "sampler.tick": 1}
    assert st["subscribers"] == 2
    assert st["recent"][0]["kind"] == "sampler.tick"

    subs = bus.list_subscribers()
    assert [s["kind"] for s in subs] == ["message", "sampler.tick"]
    assert all(s["handler"].endswith("sink") for s in subs)

    bus.clear()
    assert bus.list_subscribers() == []


def test_concurrent_publishers_never_interleave_handlers(bus):
    active = {"n": 0, "max": 0}
    lock = threading.Lock()
    calls = []

    def handler(p):  # noqa: ANN001
        with lock:
            active["n"] += 1
            active["max"] = max(active["max"], active["n"])
        calls.append(p)
        with lock:
            active["n"] -= 1

    bus.subscribe("message", handler)
    bus.subscribe("message", handler)

    def worker(base: int) -> None:
        for i in range(50):
            bus.publish("message", base + i)

    threads = [threading.Thread(target=worker, args=(k * 1000,)) for k in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert active["max"] == 1
    assert len(calls) == 4 * 50 * 2
    # both handlers of one publish run back to back
    assert all(calls[i] == calls[i + 1] for i in range(0, len(calls), 2))


def test_handler_failure_logged_when_no_reporter():
    from memwatch.core.events.bus import EventBus
    from tests.helpers.fakes import DummyLogger

    log = DummyLogger()
    bus = EventBus(logger=log)

    def bad(_ev):  # noqa: ANN001
        raise RuntimeError("boom")

    bus.subscribe("message", bad)
    assert bus.publish("message", "x") == 0
    ((level, msg),) = log.records
    assert level == "warning"
    assert "boom" in msg
