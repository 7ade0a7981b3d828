import json
import logging

import pytest
import requests

from display.poller import LatestRecordClient, PollError, Poller, ticks
from display.slot import DisplaySlot


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


class RecordingRenderer:
    def __init__(self):
        self.shown = []
        self.cleared = 0

    def show(self, identity):
        self.shown.append(identity.name)

    def clear(self):
        self.cleared += 1


class ScriptedFetch:
    """Returns queued responses in order, repeating the last one."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        item = self.responses[0] if len(self.responses) == 1 else self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeResponse:
    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    def __init__(self, result):
        self.result = result
        self.calls = []
        self.closed = False

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result

    def close(self):
        self.closed = True


def record(record_id, name, ts):
    return {"id": record_id, "firstName": name, "lastName": "Tester", "createdAt": ts}


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def renderer():
    return RecordingRenderer()


@pytest.fixture()
def slot(clock, renderer):
    return DisplaySlot(renderer, dwell_seconds=20.0, clock=clock)


def test_ticks_are_fixed_rate(clock):
    seen = []
    for n in ticks(0.5, clock=clock, sleep=clock.sleep):
        seen.append((n, clock()))
        if n == 3:
            break
    assert seen == [(0, 0.0), (1, 0.5), (2, 1.0), (3, 1.5)]


def test_ticks_reanchor_after_overrun(clock):
    stamps = []
    for n in ticks(1.0, clock=clock, sleep=clock.sleep):
        stamps.append(clock())
        if n == 0:
            clock.now += 3.5  # slow cycle
        if n == 2:
            break
    assert stamps == [0.0, 3.5, 4.5]


def test_boot_then_new_scan(slot, renderer):
    fetch = ScriptedFetch(
        record("a", "Ada", 10),
        record("a", "Ada", 10),
        record("b", "Bob", 20),
        record("b", "Bob", 20),
    )
    poller = Poller(slot, fetch)

    assert [poller.poll_once() for _ in range(4)] == ["BOOT", "IGNORE", "NEW", "IGNORE"]
    assert renderer.shown == ["Bob Tester"]


def test_empty_server_is_not_a_boot(slot, renderer):
    fetch = ScriptedFetch(None, record("a", "Ada", 10))
    poller = Poller(slot, fetch)

    assert poller.poll_once() is None
    assert slot.memory.initialized_record_id is None
    assert poller.poll_once() == "BOOT"
    assert renderer.shown == []


def test_poll_errors_leave_the_slot_alone(slot, renderer, clock, caplog):
    fetch = ScriptedFetch(
        record("boot", "Boot", 1),
        record("a", "Ada", 10),
        PollError("Latest endpoint returned 500"),
    )
    poller = Poller(slot, fetch)
    poller.poll_once()
    poller.poll_once()

    with caplog.at_level(logging.WARNING, logger="display.poller"):
        assert poller.poll_once() is None

    assert "Poll skipped" in caplog.text
    assert slot.state == "showing"
    assert renderer.cleared == 0


def test_expiry_runs_before_fetch(slot, renderer, clock):
    fetch = ScriptedFetch(record("boot", "Boot", 1), record("a", "Ada", 10))
    poller = Poller(slot, fetch)
    poller.poll_once()
    poller.poll_once()

    clock.now += 20
    fetch.responses = [PollError("down")]
    poller.poll_once()
    assert slot.state == "idle"
    assert renderer.cleared == 1

    fetch.responses = [record("a", "Ada", 10)]
    assert poller.poll_once() == "IGNORE"
    assert renderer.shown == ["Ada Tester"]


def test_wrapped_payloads_are_unwrapped(slot, renderer):
    fetch = ScriptedFetch(
        {"attendance": record("boot", "Boot", 1)},
        {"data": [record("a", "Ada", 10)]},
    )
    poller = Poller(slot, fetch)
    poller.poll_once()
    assert poller.poll_once() == "NEW"
    assert renderer.shown == ["Ada Tester"]


def test_run_stops_after_max_ticks(slot, clock):
    fetch = ScriptedFetch(record("a", "Ada", 10))
    poller = Poller(slot, fetch, interval=0.3, sleep=clock.sleep)

    poller.run(max_ticks=5)
    assert fetch.calls == 5
    assert clock() == pytest.approx(1.5)
    assert poller.running is False


def test_second_start_is_rejected(slot):
    poller = Poller(slot, ScriptedFetch(None))
    poller.start()
    with pytest.raises(RuntimeError):
        poller.start()
    with pytest.raises(RuntimeError):
        poller.run(max_ticks=1)

    poller.stop()
    poller.start()
    assert poller.running is True


def test_reset_rearms_boot(slot, renderer):
    fetch = ScriptedFetch(record("boot", "Boot", 1), record("a", "Ada", 10))
    poller = Poller(slot, fetch)
    poller.poll_once()
    poller.poll_once()

    poller.reset()
    assert poller.poll_once() == "BOOT"
    assert renderer.shown == ["Ada Tester"]


def test_client_returns_json_body():
    session = FakeSession(FakeResponse(payload={"id": "a"}))
    client = LatestRecordClient("http://kiosk.local:8000/", session=session)

    assert client.fetch_latest() == {"id": "a"}
    url, kwargs = session.calls[0]
    assert url == "http://kiosk.local:8000/attendance/latest"
    assert "t" in kwargs["params"]
    assert kwargs["headers"]["Cache-Control"] == "no-cache"

    client.close()
    assert session.closed is True


def test_client_treats_404_as_empty():
    client = LatestRecordClient(session=FakeSession(FakeResponse(status_code=404)))
    assert client.fetch_latest() is None


@pytest.mark.parametrize(
    "result",
    [
        FakeResponse(status_code=500),
        FakeResponse(invalid_json=True),
        requests.ConnectionError("refused"),
        requests.Timeout("slow"),
    ],
)
def test_client_raises_poll_error(result):
    client = LatestRecordClient(session=FakeSession(result))
    with pytest.raises(PollError):
        client.fetch_latest()


def test_non_finite_timestamps_do_not_stop_polling(slot, renderer):
    fetch = ScriptedFetch(
        json.loads('{"id": "a", "createdAt": NaN}'),
        json.loads('{"id": "b", "firstName": "Bea", "lastName": "Tester", "updatedAt": Infinity}'),
    )
    poller = Poller(slot, fetch)

    assert poller.poll_once() == "BOOT"
    assert slot.memory.last_shown_timestamp is None
    assert poller.poll_once() == "NEW"
    assert renderer.shown == ["Bea Tester"]


def test_unhandled_payload_errors_skip_the_cycle(slot, clock, caplog):
    class ExplodingRenderer:
        def show(self, identity):
            raise RuntimeError("display went away")

        def clear(self):
            pass

    slot.renderer = ExplodingRenderer()
    fetch = ScriptedFetch(record("boot", "Boot", 1), record("a", "Ada", 10))
    poller = Poller(slot, fetch, sleep=clock.sleep)
    poller.poll_once()

    with caplog.at_level(logging.ERROR, logger="display.poller"):
        assert poller.poll_once() is None
    assert "could not handle latest payload" in caplog.text

    # the loop keeps going
    poller.run(max_ticks=2)
    assert fetch.calls == 4


def test_empty_page_does_not_show_a_placeholder(slot, renderer):
    fetch = ScriptedFetch({"id": "a"}, {"data": [], "total": 0}, {"attendance": None})
    poller = Poller(slot, fetch)

    assert poller.poll_once() == "BOOT"
    assert poller.poll_once() is None
    assert poller.poll_once() is None
    assert slot.state == "idle"
    assert renderer.shown == []
