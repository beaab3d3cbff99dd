from whac.game import AudioChannel, MemoryBestScoreStore, Occupant, Phase
from whac.game.commands import ClearFeedback
from whac.game.hits import HitResolver
from whac.game.scoring import Scoreboard
from whac.game.slots import SlotStore
from whac.game.timers import EpochTimers


def make_resolver(loop, sink, *, score=0):
    received = []
    timers = EpochTimers(loop, lambda cmd, epoch: received.append(cmd))
    store = SlotStore(5)
    scoreboard = Scoreboard(MemoryBestScoreStore())
    scoreboard.score = score
    resolver = HitResolver(timers, store, scoreboard, AudioChannel([sink]))
    return resolver, store, scoreboard, received


def test_favorable_hit_scores_and_shows_feedback(loop, sink):
    resolver, store, scoreboard, received = make_resolver(loop, sink)
    store.update(2, occupant=Occupant.FAVORABLE, visible=True)

    hit = resolver.resolve(2, Phase.ACTIVE)

    assert hit is not None
    assert (hit.delta, hit.score) == (1, 1)
    assert scoreboard.score == 1
    assert (store[2].occupant, store[2].visible, store[2].feedback) == (None, False, True)
    assert sink.kinds() == ["tap_hit"]

    loop.advance_ms(599)
    assert received == []
    loop.advance_ms(1)
    assert received == [ClearFeedback(2, store[2].generation)]
    assert resolver.clear_feedback(received[0]) is True
    assert store[2].feedback is False


def test_unfavorable_hit_never_goes_below_zero(loop, sink):
    resolver, store, scoreboard, _ = make_resolver(loop, sink)
    store.update(3, occupant=Occupant.UNFAVORABLE, visible=True)

    hit = resolver.resolve(3, Phase.ACTIVE)

    assert hit is not None
    assert hit.delta == -1
    assert scoreboard.score == 0


def test_unfavorable_hit_subtracts_one(loop, sink):
    resolver, store, scoreboard, _ = make_resolver(loop, sink, score=4)
    store.update(3, occupant=Occupant.UNFAVORABLE, visible=True)

    resolver.resolve(3, Phase.ACTIVE)
    assert scoreboard.score == 3


def test_ignored_taps_change_nothing(loop, sink):
    resolver, store, scoreboard, received = make_resolver(loop, sink)
    store.update(1, occupant=Occupant.FAVORABLE, visible=False)  # Not exposed
    store.update(4, occupant=Occupant.FAVORABLE, visible=True)
    before = store.snapshot()

    assert resolver.resolve(0, Phase.ACTIVE) is None  # Empty
    assert resolver.resolve(1, Phase.ACTIVE) is None
    assert resolver.resolve(9, Phase.ACTIVE) is None  # No such slot
    assert resolver.resolve(-1, Phase.ACTIVE) is None
    assert resolver.resolve(4, Phase.FINISHED) is None
    assert resolver.resolve(4, Phase.IDLE) is None

    assert store.snapshot() == before
    assert scoreboard.score == 0
    assert sink.events == []
    loop.advance_ms(1000)
    assert received == []


def test_double_tap_scores_once(loop, sink):
    resolver, store, scoreboard, _ = make_resolver(loop, sink)
    store.update(0, occupant=Occupant.FAVORABLE, visible=True)

    assert resolver.resolve(0, Phase.ACTIVE) is not None
    assert resolver.resolve(0, Phase.ACTIVE) is None
    assert scoreboard.score == 1


def test_feedback_clear_does_not_touch_newer_occupant(loop, sink):
    resolver, store, _, received = make_resolver(loop, sink)
    store.update(2, occupant=Occupant.FAVORABLE, visible=True)
    resolver.resolve(2, Phase.ACTIVE)

    # New spawn lands on the same slot while feedback is still showing
    loop.advance_ms(300)
    store.update(2, occupant=Occupant.UNFAVORABLE, visible=True, feedback=False)

    loop.advance_ms(300)
    assert resolver.clear_feedback(received[0]) is False
    assert store[2].occupant is Occupant.UNFAVORABLE
    assert store[2].visible is True
