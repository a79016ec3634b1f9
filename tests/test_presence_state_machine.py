import pytest

from vision.classifier import PresenceVerdict
from vision.presence import PresenceState, PresenceStateMachine


PRESENT = PresenceVerdict(is_present=True, confidence=0.8)
ABSENT = PresenceVerdict(is_present=False, confidence=0.1)


def _machine(confirm_frames: int = 1) -> tuple[PresenceStateMachine, list]:
    events: list = []
    machine = PresenceStateMachine(confirm_frames=confirm_frames)
    machine.add_entered_listener(lambda confidence: events.append(("entered", confidence)))
    machine.add_left_listener(lambda: events.append(("left",)))
    return machine, events


def test_initial_state_is_absent() -> None:
    machine = PresenceStateMachine()

    assert machine.state is PresenceState.ABSENT
    assert machine.previous_state is PresenceState.ABSENT
    assert machine.is_present is False


def test_enter_and_leave_fire_once_per_flip() -> None:
    machine, events = _machine()

    for verdict in (PRESENT, PRESENT, PRESENT, ABSENT, ABSENT, PRESENT):
        machine.update(verdict)

    assert events == [("entered", 0.8), ("left",), ("entered", 0.8)]


def test_unchanged_state_fires_nothing() -> None:
    machine, events = _machine()

    assert machine.update(ABSENT) is None
    assert machine.update(ABSENT) is None
    assert events == []


def test_update_returns_transition() -> None:
    machine, _ = _machine()

    transition = machine.update(PRESENT)

    assert transition is not None
    assert transition.previous is PresenceState.ABSENT
    assert transition.current is PresenceState.PRESENT
    assert transition.confidence == 0.8
    assert machine.previous_state is PresenceState.ABSENT


def test_single_frame_oscillation_churns_events() -> None:
    machine, events = _machine()

    for verdict in (PRESENT, ABSENT) * 3:
        machine.update(verdict)

    assert len(events) == 6


def test_confirm_frames_requires_consecutive_contrary_verdicts() -> None:
    machine, events = _machine(confirm_frames=3)

    machine.update(PRESENT)
    machine.update(PRESENT)
    machine.update(ABSENT)
    machine.update(PRESENT)
    assert events == []

    machine.update(PRESENT)
    machine.update(PRESENT)
    assert events == [("entered", 0.8)]
    assert machine.is_present is True


def test_failing_listener_does_not_block_others() -> None:
    machine = PresenceStateMachine()
    calls: list[float] = []

    def broken(confidence: float) -> None:
        raise RuntimeError("boom")

    machine.add_entered_listener(broken)
    machine.add_entered_listener(calls.append)

    machine.update(PRESENT)

    assert calls == [0.8]
    assert machine.is_present is True


def test_removed_listener_is_not_called() -> None:
    machine = PresenceStateMachine()
    calls: list = []
    machine.add_left_listener(lambda: calls.append("left"))
    listener = lambda confidence: calls.append("entered")  # noqa: E731
    machine.add_entered_listener(listener)
    machine.remove_entered_listener(listener)

    machine.update(PRESENT)
    machine.update(ABSENT)

    assert calls == ["left"]


def test_reset_returns_to_absent_silently() -> None:
    machine, events = _machine()
    machine.update(PRESENT)

    machine.reset()

    assert machine.state is PresenceState.ABSENT
    assert events == [("entered", 0.8)]


def test_invalid_confirm_frames() -> None:
    with pytest.raises(ValueError):
        PresenceStateMachine(confirm_frames=0)
