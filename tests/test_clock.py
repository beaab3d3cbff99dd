from whac.game.clock import Clock
from whac.game.commands import ClockTick
from whac.game.timers import EpochTimers


def make_clock(loop, total=3):
    received = []
    timers = EpochTimers(loop, lambda cmd, epoch: received.append((cmd, epoch)))
    return Clock(timers, total_seconds=total), timers, received


def test_ticks_once_per_second_and_stops_at_zero(loop):
    clock, _, received = make_clock(loop)
    clock.start()

    seen = []
    for _ in range(5):
        loop.advance(1)
        while received:
            received.pop(0)
            seen.append(clock.tick())

    assert seen == [2, 1, 0]
    assert clock.remaining == 0
    assert not clock.running


def test_tick_never_goes_negative(loop):
    clock, _, _ = make_clock(loop, total=1)
    assert clock.tick() == 0
    assert clock.tick() == 0
    assert clock.elapsed == 1


def test_stop_is_idempotent(loop):
    clock, timers, received = make_clock(loop)
    clock.stop()
    clock.start()
    clock.stop()
    clock.stop()

    loop.advance(5)
    assert received == []
    assert len(timers) == 0


def test_start_twice_arms_one_tick(loop):
    clock, _, received = make_clock(loop)
    clock.start()
    clock.start()

    loop.advance(1)
    assert received == [(ClockTick(), 0)]


def test_cancel_all_advances_epoch(loop):
    clock, timers, received = make_clock(loop)
    clock.start()

    assert timers.cancel_all() == 1
    clock.reset()
    clock.start()

    loop.advance(1)
    assert received == [(ClockTick(), 1)]
    assert clock.remaining == 3
