"""
Run configuration and the fixed-layout stream header

Layout, MSB first:
    policy(2) | minW(5) | maxW(5) | alphabetSize(16) | alphabetSize x symbol(8)
"""
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterable, Union

from .bit_utils.bit_reader import BitReader
from .bit_utils.bit_writer import BitWriter
from .errors import ConfigError, HeaderCorrupt

BITS_PER_POLICY = 2
BITS_PER_WIDTH = 5
BITS_PER_A_SIZE = 16
BITS_PER_SYMBOL = 8

MIN_WIDTH = 1
MAX_WIDTH = 16


class Policy(IntEnum):
    """What the codebook does once it is full. Values are the wire codes."""

    FREEZE = 0
    RESET = 1
    LRU = 2
    LFU = 3

    @classmethod
    def parse(cls, value: Union["Policy", str, int]) -> "Policy":
        """Accept a member, a case-insensitive name or a wire code."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ConfigError(f"Unknown policy: {value}") from None
        try:
            return cls(value)
        except ValueError:
            raise ConfigError(f"Bad policy code: {value}") from None


@dataclass(frozen=True)
class RunContext:
    """
    Immutable per-run parameters shared by encoder and decoder.

    alphabet[i] is bound to code i, CLEAR = A, BASE = A + 1.
    """

    alphabet: bytes
    min_width: int
    max_width: int
    policy: Policy
    symbol_codes: Dict[int, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(
            self, "symbol_codes", {sym: i for i, sym in enumerate(self.alphabet)}
        )

    @classmethod
    def create(
        cls,
        alphabet: Iterable[int],
        min_width: int = 9,
        max_width: int = 16,
        policy: Union[Policy, str, int] = Policy.FREEZE,
    ) -> "RunContext":
        """
        Build a validated context from user configuration.

        Raises:
            ConfigError: If the widths or the alphabet cannot form a valid run
        """
        alphabet = bytes(alphabet)
        problem = cls.check(alphabet, min_width, max_width)
        if problem:
            raise ConfigError(problem)
        return cls(alphabet, min_width, max_width, Policy.parse(policy))

    @staticmethod
    def check(alphabet: bytes, min_width: int, max_width: int) -> str:
        """Return a description of what is wrong, or an empty string."""
        if not MIN_WIDTH <= min_width <= MAX_WIDTH:
            return f"minW must be in [{MIN_WIDTH}, {MAX_WIDTH}], got {min_width}"
        if not MIN_WIDTH <= max_width <= MAX_WIDTH:
            return f"maxW must be in [{MIN_WIDTH}, {MAX_WIDTH}], got {max_width}"
        if min_width > max_width:
            return f"Invalid width range: minW {min_width} > maxW {max_width}"
        if not alphabet:
            return "Alphabet is empty"
        if len(set(alphabet)) != len(alphabet):
            return "Alphabet contains duplicate symbols"
        if len(alphabet) + 1 > 1 << max_width:
            return (
                f"Alphabet of {len(alphabet)} symbols does not fit "
                f"in {max_width}-bit codes"
            )
        return ""

    @property
    def size(self) -> int:
        return len(self.alphabet)

    @property
    def clear_code(self) -> int:
        return len(self.alphabet)

    @property
    def base_code(self) -> int:
        return len(self.alphabet) + 1

    @property
    def limit(self) -> int:
        """Upper bound on next_code; codes stay below it."""
        return 1 << self.max_width

    @property
    def capacity(self) -> int:
        """Entries the table can hold: every code value but CLEAR."""
        return self.limit - 1

    def width_for(self, next_code: int) -> int:
        """
        Code width in effect while the table's next free code is next_code.
        Grows as soon as next_code reaches 2**W, up to max_width.
        """
        return min(self.max_width, max(self.min_width, next_code.bit_length()))

    @property
    def initial_width(self) -> int:
        return self.width_for(self.base_code)

    def header_bits(self) -> int:
        return (
            BITS_PER_POLICY
            + 2 * BITS_PER_WIDTH
            + BITS_PER_A_SIZE
            + BITS_PER_SYMBOL * self.size
        )


def write_header(writer: BitWriter, ctx: RunContext) -> None:
    """Write the run configuration in front of the code stream."""
    writer.write_bits_msb(int(ctx.policy), BITS_PER_POLICY)
    writer.write_bits_msb(ctx.min_width, BITS_PER_WIDTH)
    writer.write_bits_msb(ctx.max_width, BITS_PER_WIDTH)
    writer.write_bits_msb(ctx.size, BITS_PER_A_SIZE)
    for symbol in ctx.alphabet:
        writer.write_bits_msb(symbol, BITS_PER_SYMBOL)


def read_header(reader: BitReader) -> RunContext:
    """
    Parse the header at the start of a compressed stream.

    Raises:
        HeaderCorrupt: If the header is truncated or invalid
    """
    try:
        policy_code = reader.read_bits_msb(BITS_PER_POLICY)
        min_width = reader.read_bits_msb(BITS_PER_WIDTH)
        max_width = reader.read_bits_msb(BITS_PER_WIDTH)
        size = reader.read_bits_msb(BITS_PER_A_SIZE)
        if size == 0:
            raise HeaderCorrupt("Header declares an empty alphabet")
        alphabet = bytes(reader.read_bits_msb(BITS_PER_SYMBOL) for _ in range(size))
    except EOFError as exc:
        raise HeaderCorrupt(f"Truncated header: {exc}") from exc

    try:
        policy = Policy(policy_code)
    except ValueError:
        raise HeaderCorrupt(f"Bad policy code: {policy_code}") from None

    problem = RunContext.check(alphabet, min_width, max_width)
    if problem:
        raise HeaderCorrupt(problem)
    return RunContext(alphabet, min_width, max_width, policy)
