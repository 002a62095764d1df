from datetime import timedelta

from services.timer import AUTO_SUBMIT_TEXT, ManualClock, TimerController


def test_countdown_emits_once_at_zero():
    fired = []
    timer = TimerController(on_expire=fired.append)
    timer.arm(20)

    results = [timer.tick() for _ in range(19)]
    assert results == [None] * 19
    assert timer.remaining() == 1

    assert timer.tick() == AUTO_SUBMIT_TEXT
    assert fired == [AUTO_SUBMIT_TEXT]
    assert not timer.armed

    # ticks after expiry are no-ops
    assert timer.tick() is None
    assert timer.remaining() == 0
    assert fired == [AUTO_SUBMIT_TEXT]


def test_cancel_disarms_silently():
    fired = []
    timer = TimerController(on_expire=fired.append)
    timer.arm(2)
    timer.tick()
    timer.cancel()
    assert timer.tick() is None
    assert timer.tick() is None
    assert fired == []


def test_rearm_resets_remaining():
    timer = TimerController()
    timer.arm(60)
    for _ in range(10):
        timer.tick()
    timer.arm(120)
    assert timer.remaining() == 120
    assert timer.budget == 120


def test_stale_generation_is_discarded():
    timer = TimerController()
    first = timer.arm(5)
    timer.cancel()
    second = timer.arm(5)
    assert second != first

    assert timer.tick(first) is None
    assert timer.remaining() == 5
    timer.tick(second)
    assert timer.remaining() == 4


def test_resume_clamps_to_budget():
    timer = TimerController()
    timer.resume(20, 35)
    assert timer.remaining() == 20
    timer.resume(20, 7)
    assert timer.remaining() == 7
    assert timer.armed


def test_manual_clock_fires_in_due_order():
    clock = ManualClock()
    start = clock.now()
    calls = []
    clock.after(3, lambda: calls.append("c"))
    clock.after(1, lambda: calls.append("a"))
    clock.after(2, lambda: calls.append("b"))

    clock.advance(2)
    assert calls == ["a", "b"]
    assert clock.now() == start + timedelta(seconds=2)

    clock.advance(5)
    assert calls == ["a", "b", "c"]


def test_manual_clock_runs_callbacks_scheduled_during_advance():
    clock = ManualClock()
    seen = []

    def chain():
        seen.append(clock.now())
        if len(seen) < 3:
            clock.after(1, chain)

    clock.after(1, chain)
    clock.advance(10)
    assert len(seen) == 3
    assert clock.pending() == 0


def test_manual_clock_skips_cancelled():
    clock = ManualClock()
    calls = []
    handle = clock.after(1, lambda: calls.append(1))
    handle.cancel()
    assert clock.pending() == 0
    clock.advance(5)
    assert calls == []
