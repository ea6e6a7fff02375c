from typing import BinaryIO

from bitarray import bitarray
from bitarray.util import ba2int


class EndOfBitStream(EOFError):
    """No data bits are left: only byte-alignment padding, or nothing."""


class ShortRead(EOFError):
    """Some bits are left, but fewer than requested and not just padding."""


class BitReader:
    """
    A class for reading MSB-first bit fields from a byte stream.
    Input is pulled in chunks into a bitarray buffer.
    """

    CHUNK_BYTES = 8192

    def __init__(self, in_stream: BinaryIO) -> None:
        """
        Initialize BitReader on top of a binary input stream.

        Args:
            in_stream: Stream holding the packed bytes
        """
        self.in_stream = in_stream
        self.bits = bitarray(endian="big")
        self.pos = 0
        self.consumed = 0
        self.eof = False

    @property
    def bit_position(self) -> int:
        """Total number of bits consumed so far."""
        return self.consumed + self.pos

    def _fill(self, n: int) -> int:
        """Buffer at least n unread bits if the stream has them."""
        while len(self.bits) - self.pos < n and not self.eof:
            chunk = self.in_stream.read(self.CHUNK_BYTES)
            if not chunk:
                self.eof = True
                break
            if self.pos >= self.CHUNK_BYTES * 8:
                del self.bits[: self.pos]
                self.consumed += self.pos
                self.pos = 0
            self.bits.frombytes(chunk)
        return len(self.bits) - self.pos

    def at_padding(self) -> bool:
        """
        Tell whether only byte-alignment padding remains: fewer than 8
        bits, all of them zero.
        """
        available = self._fill(8)
        return available < 8 and not self.bits[self.pos :].any()

    def read_bits_msb(self, n: int) -> int:
        """
        Read n bits in MSB-first order and return them as an integer.

        Args:
            n: Number of bits to read

        Returns:
            The value as an integer

        Raises:
            EndOfBitStream: If only padding (or nothing) is left
            ShortRead: If the stream stops in the middle of the field
        """
        if n < 0:
            raise ValueError("Length cannot be negative")
        if n == 0:
            return 0
        available = self._fill(n)
        if available < n:
            if self.at_padding():
                raise EndOfBitStream("Bit stream exhausted")
            raise ShortRead(
                f"Need {n} bits, only {available} left in the bit stream"
            )
        val = ba2int(self.bits[self.pos : self.pos + n], signed=False)
        self.pos += n
        return val
