import pytest

from webgif_lib.pacing import PacingClock


class VirtualClock:
    def __init__(self):
        self.now_ns = 0
        self.sleeps = []

    def __call__(self):
        return self.now_ns

    def advance_ms(self, ms):
        self.now_ns += int(round(ms * 1_000_000))

    def sleep_ms(self, ms):
        self.sleeps.append(ms)
        self.advance_ms(ms)


def test_deadlines_are_anchored_at_start():
    clock = VirtualClock()
    pacing = PacingClock(10, clock=clock, sleep_ms=clock.sleep_ms, start_ns=5_000)
    assert pacing.deadline_ns(0) == 5_000
    assert pacing.deadline_ns(3) == 5_000 + 300_000_000


def test_wait_sleeps_until_deadline():
    clock = VirtualClock()
    pacing = PacingClock(10, clock=clock, sleep_ms=clock.sleep_ms)
    clock.advance_ms(30)
    waited = pacing.wait_for_frame(1)
    assert waited == pytest.approx(70)
    assert clock.now_ns == 100_000_000


def test_late_frame_does_not_wait_or_catch_up():
    clock = VirtualClock()
    pacing = PacingClock(10, clock=clock, sleep_ms=clock.sleep_ms)
    clock.advance_ms(250)
    assert pacing.remaining_ms(1) == 0
    assert pacing.wait_for_frame(1) == 0
    assert clock.sleeps == []
    # Next deadline is still start + 3 * interval, not shifted by the overrun.
    assert pacing.wait_for_frame(3) == pytest.approx(50)


def test_latency_does_not_accumulate():
    clock = VirtualClock()
    pacing = PacingClock(20, clock=clock, sleep_ms=clock.sleep_ms)
    for idx in range(1, 21):
        clock.advance_ms(7)  # per-frame work
        pacing.wait_for_frame(idx)
    assert clock.now_ns == 1_000_000_000


def test_rejects_non_positive_fps():
    with pytest.raises(ValueError):
        PacingClock(0)
