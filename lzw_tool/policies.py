"""
Eviction policies: what the codebook does with a new phrase once it is full

Every policy answers admit() with one of four decisions. The answer depends
only on the table state, never on the phrase itself, so the decoder can
learn which slot a pending insert will take before it knows the phrase.
"""
from abc import ABC, abstractmethod
from typing import NamedTuple, Union

from .header import Policy, RunContext
from .trackers import LFUTracker, LRUTracker


class Insert(NamedTuple):
    """Store the phrase under a fresh code."""

    code: int


class Evict(NamedTuple):
    """Drop the entry under victim and store the phrase under code."""

    victim: int
    code: int


class Reject(NamedTuple):
    """Leave the table as it is."""


class Clear(NamedTuple):
    """Wipe the table back to the alphabet (RESET epoch boundary)."""


Decision = Union[Insert, Evict, Reject, Clear]


class EvictionPolicy(ABC):
    """
    Strategy consulted by the codebook on every insert attempt.

    tracks_usage tells the codebook whether lookups have to be reported
    through touch().
    """

    kind: Policy
    tracks_usage = False

    def __init__(self, ctx: RunContext):
        self.ctx = ctx

    def admit(self, next_code: int) -> Decision:
        if next_code < self.ctx.limit:
            return Insert(next_code)
        return self.when_full()

    @abstractmethod
    def when_full(self) -> Decision:
        pass

    def touch(self, code: int) -> None:
        """A lookup or insertion used code."""

    def forget(self, code: int) -> None:
        """code no longer holds a phrase."""

    def reset(self) -> None:
        """The table went back to the bare alphabet."""


class FreezePolicy(EvictionPolicy):
    """Once full, the table never changes again."""

    kind = Policy.FREEZE

    def when_full(self) -> Decision:
        return Reject()


class ResetPolicy(EvictionPolicy):
    """Once full, both sides start a new epoch at the CLEAR code."""

    kind = Policy.RESET

    def when_full(self) -> Decision:
        return Clear()


class LRUPolicy(EvictionPolicy):
    """Once full, the least recently used phrase gives up its code."""

    kind = Policy.LRU
    tracks_usage = True

    def __init__(self, ctx: RunContext):
        super().__init__(ctx)
        self.tracker = LRUTracker()

    def when_full(self) -> Decision:
        victim = self.tracker.find_lru()
        if victim is None:
            return Reject()
        return Evict(victim, victim)

    def touch(self, code: int) -> None:
        self.tracker.use(code)

    def forget(self, code: int) -> None:
        self.tracker.remove(code)

    def reset(self) -> None:
        self.tracker.clear()


class LFUPolicy(EvictionPolicy):
    """Once full, the least frequently used phrase gives up its code."""

    kind = Policy.LFU
    tracks_usage = True

    def __init__(self, ctx: RunContext):
        super().__init__(ctx)
        self.tracker = LFUTracker()

    def when_full(self) -> Decision:
        victim = self.tracker.find_lfu()
        if victim is None:
            return Reject()
        return Evict(victim, victim)

    def touch(self, code: int) -> None:
        self.tracker.use(code)

    def forget(self, code: int) -> None:
        self.tracker.remove(code)

    def reset(self) -> None:
        self.tracker.clear()


POLICIES = {
    Policy.FREEZE: FreezePolicy,
    Policy.RESET: ResetPolicy,
    Policy.LRU: LRUPolicy,
    Policy.LFU: LFUPolicy,
}


def make_policy(ctx: RunContext) -> EvictionPolicy:
    return POLICIES[ctx.policy](ctx)
