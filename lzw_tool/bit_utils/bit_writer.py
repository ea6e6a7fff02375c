from typing import BinaryIO

from bitarray import bitarray
from bitarray.util import int2ba


class BitWriter:
    """
    A class for writing bits to a byte stream through a bitarray buffer.
    Values are packed MSB first; complete bytes are flushed to the
    underlying stream in batches.
    """

    FLUSH_BYTES = 8192

    def __init__(self, out_stream: BinaryIO) -> None:
        """
        Initialize a BitWriter on top of a binary output stream.

        Args:
            out_stream: Stream receiving the packed bytes
        """
        self.out_stream = out_stream
        self.bits = bitarray(endian="big")
        self.bit_count = 0
        self.closed = False

    def write_bits_msb(self, value: int, length: int) -> None:
        """
        Write the low `length` bits of `value`, most significant bit first.

        Args:
            value: Integer value to write
            length: Number of bits to write

        Raises:
            ValueError: If length is negative or the writer is closed
        """
        if length < 0:
            raise ValueError("Length cannot be negative")
        if self.closed:
            raise ValueError("Write on a closed BitWriter")
        if length == 0:
            return
        value &= (1 << length) - 1
        self.bits.extend(int2ba(value, length=length, endian="big"))
        self.bit_count += length
        if len(self.bits) >= self.FLUSH_BYTES * 8:
            self._flush_whole_bytes()

    def pad_length(self) -> int:
        """Number of zero bits close() would add to reach a byte boundary."""
        return -self.bit_count % 8

    def _flush_whole_bytes(self) -> None:
        whole = len(self.bits) - len(self.bits) % 8
        if whole:
            self.out_stream.write(self.bits[:whole].tobytes())
            del self.bits[:whole]

    def byte_align(self) -> None:
        """Add padding bits to achieve byte alignment."""
        padding = self.pad_length()
        if padding:
            self.bits.extend(padding * [0])
            self.bit_count += padding

    def close(self) -> None:
        """
        Zero-pad the final partial byte and flush everything.
        Safe to call more than once.
        """
        if self.closed:
            return
        self.byte_align()
        self._flush_whole_bytes()
        flush = getattr(self.out_stream, "flush", None)
        if flush is not None:
            flush()
        self.closed = True
