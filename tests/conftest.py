import heapq
import itertools
from collections import deque

import pytest

from whac.game import AudioChannel, MemoryBestScoreStore, SessionController

# Float slack when comparing scheduled times
_EPS = 1e-9


class FakeHandle:
    def __init__(self, callback, args):
        self._callback = callback
        self._args = args
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    def cancelled(self):
        return self._cancelled

    def run(self):
        self._callback(*self._args)


class FakeLoop:
    """Event loop stand-in where time only moves on `advance`."""

    def __init__(self):
        self.now = 0.0
        self._seq = itertools.count()
        self._heap = []

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(callback, args)
        heapq.heappush(self._heap, (self.now + delay, next(self._seq), handle))
        return handle

    def call_soon_threadsafe(self, callback, *args):
        return self.call_later(0, callback, *args)

    def advance(self, seconds):
        target = self.now + seconds
        while self._heap and self._heap[0][0] <= target + _EPS:
            when, _, handle = heapq.heappop(self._heap)
            self.now = max(self.now, when)
            if not handle.cancelled():
                handle.run()
        self.now = target

    def advance_ms(self, ms):
        self.advance(ms / 1000)

    def pending(self):
        return sum(1 for _, _, h in self._heap if not h.cancelled())


class StubRandom:
    """Random source returning queued values, then fixed defaults.

    `slots` feeds `randrange`, `draws` feeds `random` (type draw, then jitter
    draw, per spawn). Default draw 0.99 means favorable & ~198ms jitter.
    """

    def __init__(self, slots=(), draws=(), *, default_slot=0, default_draw=0.99):
        self.slots = deque(slots)
        self.draws = deque(draws)
        self.default_slot = default_slot
        self.default_draw = default_draw

    def randrange(self, stop):
        val = self.slots.popleft() if self.slots else self.default_slot
        assert 0 <= val < stop
        return val

    def random(self):
        return self.draws.popleft() if self.draws else self.default_draw


class RecordingSink:
    def __init__(self):
        self.events = []

    def notify(self, event):
        self.events.append(event)

    def kinds(self):
        return [e.kind for e in self.events]


@pytest.fixture()
def loop():
    return FakeLoop()


@pytest.fixture()
def sink():
    return RecordingSink()


@pytest.fixture()
def make_session(loop, sink):
    def _make(*, rng=None, best=0, store=None, audio=None, **kwargs):
        store = store if store is not None else MemoryBestScoreStore(best)
        audio = audio if audio is not None else AudioChannel([sink])
        session = SessionController(loop, store=store, audio=audio, rng=rng or StubRandom(), **kwargs)
        return session, store

    return _make
