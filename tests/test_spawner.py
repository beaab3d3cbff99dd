import pytest

from conftest import StubRandom
from whac.game import Occupant
from whac.game.clock import Clock
from whac.game.commands import ClearSpawn, SpawnTick
from whac.game.constants import tier_for
from whac.game.slots import SlotStore
from whac.game.spawner import SpawnScheduler
from whac.game.timers import EpochTimers


def make_spawner(loop, rng, *, slots=5, remaining=60):
    received = []
    timers = EpochTimers(loop, lambda cmd, epoch: received.append(cmd))
    store = SlotStore(slots)
    clock = Clock(timers)
    clock.remaining = remaining
    return SpawnScheduler(timers, store, clock, rng), store, received


@pytest.mark.parametrize(
    ("elapsed", "delay", "visible", "p", "tempo"),
    [
        (0, 1500, 1000, 0.30, 1.0),
        (19, 1500, 1000, 0.30, 1.0),
        (20, 900, 550, 0.20, 1.5),
        (39, 900, 550, 0.20, 1.5),
        (40, 500, 350, 0.15, 2.0),
        (60, 500, 350, 0.15, 2.0),
    ],
)
def test_tier_boundaries(elapsed, delay, visible, p, tempo):
    tier = tier_for(elapsed)
    assert (tier.spawn_delay_ms, tier.visible_ms, tier.unfavorable_p, tier.tempo) == (delay, visible, p, tempo)


def test_first_spawn_tick_after_800ms(loop):
    spawner, _, received = make_spawner(loop, StubRandom())
    spawner.start()

    loop.advance_ms(799)
    assert received == []

    loop.advance_ms(1)
    assert received == [SpawnTick()]


def test_spawn_writes_slot_then_schedules_clear_and_next_tick(loop):
    spawner, store, received = make_spawner(loop, StubRandom(slots=[3], draws=[0.5, 0.5]))

    slot = spawner.spawn()

    assert slot.id == 3
    assert store[3].occupant is Occupant.FAVORABLE
    assert store[3].visible is True
    assert store[3].feedback is False

    loop.advance_ms(999)
    assert received == []

    loop.advance_ms(1)
    assert received == [ClearSpawn(3, Occupant.FAVORABLE, slot.generation)]

    # 1500 base + 0.5 * 200 jitter
    loop.advance_ms(599)
    assert SpawnTick() not in received
    loop.advance_ms(1)
    assert received[-1] == SpawnTick()


@pytest.mark.parametrize(
    ("remaining", "draw", "expected"),
    [
        (60, 0.25, Occupant.UNFAVORABLE),  # e=0, p=0.30
        (60, 0.30, Occupant.FAVORABLE),
        (35, 0.25, Occupant.FAVORABLE),  # e=25, p=0.20
        (35, 0.15, Occupant.UNFAVORABLE),
        (15, 0.10, Occupant.UNFAVORABLE),  # e=45, p=0.15
        (15, 0.16, Occupant.FAVORABLE),
    ],
)
def test_occupant_type_follows_tier_probability(loop, remaining, draw, expected):
    spawner, store, _ = make_spawner(loop, StubRandom(slots=[0], draws=[draw, 0.0]), remaining=remaining)
    spawner.spawn()
    assert store[0].occupant is expected


def test_visible_duration_shrinks_in_last_tier(loop):
    spawner, _, received = make_spawner(loop, StubRandom(), remaining=15)
    spawner.spawn()

    loop.advance_ms(349)
    assert not any(isinstance(c, ClearSpawn) for c in received)
    loop.advance_ms(1)
    assert any(isinstance(c, ClearSpawn) for c in received)


def test_stale_clear_does_not_hide_newer_occupant_of_same_type(loop):
    rng = StubRandom(slots=[1, 1], draws=[0.99, 0.0, 0.99, 0.0])
    spawner, store, received = make_spawner(loop, rng)

    spawner.spawn()  # t=0, clears at 1000
    loop.advance_ms(500)
    spawner.spawn()  # t=500, same slot & type, clears at 1500

    loop.advance_ms(500)
    clears = [c for c in received if isinstance(c, ClearSpawn)]
    assert len(clears) == 1
    assert spawner.clear(clears[0]) is False
    assert store[1].visible is True
    assert store[1].occupant is Occupant.FAVORABLE

    loop.advance_ms(500)
    clears = [c for c in received if isinstance(c, ClearSpawn)]
    assert spawner.clear(clears[1]) is True
    assert store[1].occupant is None
    assert store[1].visible is False


def test_clear_after_hit_leaves_feedback_alone(loop):
    spawner, store, received = make_spawner(loop, StubRandom(slots=[4]))
    spawner.spawn()
    store.update(4, occupant=None, visible=False, feedback=True)

    loop.advance_ms(1000)
    clear = next(c for c in received if isinstance(c, ClearSpawn))
    assert spawner.clear(clear) is False
    assert store[4].feedback is True


def test_stop_cancels_next_tick(loop):
    spawner, _, received = make_spawner(loop, StubRandom())
    spawner.start()
    spawner.stop()
    spawner.stop()  # idempotent

    loop.advance_ms(5000)
    assert received == []
    assert not spawner.running
