import pytest

from display.detector import SlotMemory, detect
from display.identity import DisplayedIdentity
from display.slot import DisplaySlot


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingRenderer:
    def __init__(self):
        self.events = []

    def show(self, identity):
        self.events.append(("show", identity.name))

    def clear(self):
        self.events.append(("clear", None))

    @property
    def shown(self):
        return [name for kind, name in self.events if kind == "show"]


def person(name: str) -> DisplayedIdentity:
    return DisplayedIdentity(name=name, company="Acme", position="Guest")


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def renderer():
    return RecordingRenderer()


@pytest.fixture()
def slot(clock, renderer):
    return DisplaySlot(renderer, dwell_seconds=20.0, clock=clock)


def test_detect_first_observation_is_boot():
    memory = SlotMemory()
    assert detect(memory, "a", 10) == "BOOT"


def test_detect_ignores_shown_and_expired_ids():
    memory = SlotMemory(
        last_shown_record_id="b",
        last_shown_timestamp=20,
        expired_record_id="a",
        initialized_record_id="a",
    )
    assert detect(memory, "a", 30) == "IGNORE"
    assert detect(memory, "b", 30) == "IGNORE"
    assert detect(memory, "c", 30) == "NEW"


def test_detect_ignores_stale_responses():
    memory = SlotMemory(last_shown_record_id="b", last_shown_timestamp=20, initialized_record_id="x")
    assert detect(memory, "old", 5) == "IGNORE"
    assert detect(memory, "undated", None) == "NEW"


def test_boot_suppresses_existing_record(slot, renderer):
    assert slot.observe("a", 10, person("A")) == "BOOT"
    assert slot.state == "idle"
    assert renderer.events == []

    assert slot.observe("a", 10, person("A")) == "IGNORE"
    assert renderer.events == []


def test_new_record_is_shown_exactly_once(slot, renderer, clock):
    slot.observe("boot", 1, person("Boot"))

    decisions = [slot.observe("a", 10, person("A")) for _ in range(5)]
    assert decisions == ["NEW", "IGNORE", "IGNORE", "IGNORE", "IGNORE"]
    assert slot.state == "showing"
    assert renderer.shown == ["A"]


def test_dwell_expiry_returns_to_idle(slot, renderer, clock):
    slot.observe("boot", 1, person("Boot"))
    slot.observe("a", 10, person("A"))

    clock.advance(19.5)
    assert slot.expire_if_due() is False
    assert slot.seconds_remaining() == pytest.approx(0.5)

    clock.advance(0.5)
    assert slot.expire_if_due() is True
    assert slot.state == "idle"
    assert slot.memory.expired_record_id == "a"
    assert renderer.events[-1] == ("clear", None)
    assert slot.expire_if_due() is False


def test_no_resurrection_after_expiry(slot, renderer, clock):
    slot.observe("boot", 1, person("Boot"))
    slot.observe("a", 10, person("A"))
    clock.advance(20)
    slot.expire_if_due()

    for _ in range(3):
        assert slot.observe("a", 10, person("A")) == "IGNORE"
    assert slot.state == "idle"
    assert renderer.shown == ["A"]


def test_preemption_gives_new_record_full_dwell(slot, renderer, clock):
    slot.observe("boot", 1, person("Boot"))
    slot.observe("a", 10, person("A"))

    clock.advance(15)
    assert slot.observe("b", 20, person("B")) == "NEW"
    assert slot.pending_expiry.record_id == "b"
    assert slot.seconds_remaining() == pytest.approx(20.0)

    # A's original deadline passes without touching B
    clock.advance(6)
    assert slot.expire_if_due() is False
    assert slot.current.name == "B"
    assert slot.memory.expired_record_id is None

    clock.advance(14)
    assert slot.expire_if_due() is True
    assert slot.memory.expired_record_id == "b"
    assert renderer.shown == ["A", "B"]


def test_previously_expired_record_can_return_after_another_is_shown(slot, renderer, clock):
    slot.observe("boot", 1, person("Boot"))
    slot.observe("a", 10, person("A"))
    clock.advance(20)
    slot.expire_if_due()

    slot.observe("b", 20, person("B"))
    assert slot.memory.expired_record_id is None
    assert slot.observe("a", 30, person("A again")) == "NEW"


def test_reset_clears_all_memory(slot, renderer, clock):
    slot.observe("boot", 1, person("Boot"))
    slot.observe("a", 10, person("A"))

    slot.reset()
    assert slot.state == "idle"
    assert slot.pending_expiry is None
    assert slot.memory == SlotMemory()
    assert renderer.events[-1] == ("clear", None)

    # old deadline can no longer fire
    clock.advance(60)
    assert slot.expire_if_due() is False

    assert slot.observe("a", 10, person("A")) == "BOOT"
    assert renderer.shown == ["A"]
