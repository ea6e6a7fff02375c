"""
Two-way phrase <-> code table shared by the encoder and the decoder
"""
from typing import Dict, Optional

from .header import RunContext
from .policies import Decision, Evict, Insert, Reject, make_policy


class Codebook:
    """
    LZW dictionary for one run.

    Codes 0..A-1 hold the alphabet and never change. Codes from BASE up are
    assigned to learned phrases and governed by the eviction policy.
    """

    def __init__(self, ctx: RunContext):
        self.ctx = ctx
        self.policy = make_policy(ctx)
        self.phrase_to_code: Dict[bytes, int] = {}
        self.code_to_phrase: Dict[int, bytes] = {}
        self.next_code = ctx.base_code
        self.resets = 0
        self.evictions = 0
        self.rejected = 0
        self._seed()

    def _seed(self) -> None:
        self.phrase_to_code.clear()
        self.code_to_phrase.clear()
        for code, symbol in enumerate(self.ctx.alphabet):
            phrase = bytes([symbol])
            self.phrase_to_code[phrase] = code
            self.code_to_phrase[code] = phrase
        self.next_code = self.ctx.base_code

    def __len__(self) -> int:
        return len(self.code_to_phrase)

    def __contains__(self, phrase: bytes) -> bool:
        return phrase in self.phrase_to_code

    @property
    def full(self) -> bool:
        return self.next_code >= self.ctx.limit

    @property
    def width(self) -> int:
        """Width of the next code the encoder writes."""
        return self.ctx.width_for(self.next_code)

    def read_width(self, pending: bool) -> int:
        """
        Width of the next code the decoder reads. The decoder learns each
        phrase one code later than the encoder, so a pending insert that
        will grow the table is counted in advance.
        """
        if pending and not self.full:
            return self.ctx.width_for(self.next_code + 1)
        return self.ctx.width_for(self.next_code)

    def lookup(self, phrase: bytes) -> Optional[int]:
        """Exact lookup; a hit counts as a use of the entry."""
        code = self.phrase_to_code.get(phrase)
        if code is not None and code >= self.ctx.base_code:
            self.policy.touch(code)
        return code

    def phrase(self, code: int) -> Optional[bytes]:
        return self.code_to_phrase.get(code)

    def admit(self) -> Decision:
        """What the policy would do with a new phrase right now."""
        return self.policy.admit(self.next_code)

    def insert(self, phrase: bytes, decision: Optional[Decision] = None) -> Decision:
        """
        Add phrase to the table as the policy decides. A Clear decision is
        returned untouched; the caller owns the epoch boundary and calls
        reset() itself.
        """
        if decision is None:
            decision = self.admit()
        if isinstance(decision, Insert):
            self._assign(phrase, decision.code)
            self.next_code += 1
        elif isinstance(decision, Evict):
            self._drop(decision.victim)
            self._assign(phrase, decision.code)
            self.evictions += 1
        elif isinstance(decision, Reject):
            self.rejected += 1
        return decision

    def _assign(self, phrase: bytes, code: int) -> None:
        self.phrase_to_code[phrase] = code
        self.code_to_phrase[code] = phrase
        self.policy.touch(code)

    def _drop(self, code: int) -> None:
        phrase = self.code_to_phrase.pop(code, None)
        if phrase is not None and self.phrase_to_code.get(phrase) == code:
            del self.phrase_to_code[phrase]
        self.policy.forget(code)

    def reset(self) -> None:
        """Wipe every learned phrase and start a new epoch."""
        self._seed()
        self.policy.reset()
        self.resets += 1

    def learned(self) -> Dict[int, bytes]:
        """Entries above the alphabet, by code."""
        base = self.ctx.base_code
        return {c: p for c, p in self.code_to_phrase.items() if c >= base}
