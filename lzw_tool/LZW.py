"""
Adaptive LZW compression and decompression

Variable-width codes, an alphabet carried in the stream header and one of
four policies for a full codebook (freeze, reset, LRU, LFU).
"""
from typing import BinaryIO, Callable, Iterable, Optional, Union

from .alphabet import default_alphabet
from .bit_utils.bit_reader import BitReader, EndOfBitStream, ShortRead
from .bit_utils.bit_writer import BitWriter
from .codebook import Codebook
from .compressor_ABC import Compressor
from .errors import InvalidCodeReference, OutOfAlphabetSymbol, UnexpectedEndOfStream
from .header import Policy, RunContext, read_header, write_header
from .policies import Clear, Evict, Insert

CHUNK_SIZE = 65536

CodeCallback = Callable[[int, int], None]


class Encoder:
    """
    Greedy longest-match loop. Input may be fed in pieces; the current
    match carries over from one piece to the next.
    """

    def __init__(
        self,
        ctx: RunContext,
        writer: BitWriter,
        on_code: Optional[CodeCallback] = None,
    ):
        self.ctx = ctx
        self.writer = writer
        self.codebook = Codebook(ctx)
        self.on_code = on_code
        self.prefix = b""
        self.prefix_code = -1
        self.epoch_codes = 0
        self.bytes_in = 0
        self.codes_out = 0

    def start(self) -> None:
        write_header(self.writer, self.ctx)

    def _emit(self, code: int, width: int) -> None:
        self.writer.write_bits_msb(code, width)
        self.codes_out += 1
        if self.on_code is not None:
            self.on_code(code, width)

    def feed(self, data: bytes) -> None:
        codebook = self.codebook
        symbol_codes = self.ctx.symbol_codes
        clear_code = self.ctx.clear_code
        p = self.prefix
        p_code = self.prefix_code

        for c in data:
            c_code = symbol_codes.get(c)
            if c_code is None:
                raise OutOfAlphabetSymbol(c, self.bytes_in)
            self.bytes_in += 1
            if not p:
                p, p_code = bytes((c,)), c_code
                continue

            pc = p + bytes((c,))
            pc_code = codebook.lookup(pc)
            if pc_code is not None:
                p, p_code = pc, pc_code
                continue

            self._emit(p_code, codebook.width)
            self.epoch_codes += 1
            if isinstance(codebook.insert(pc), Clear):
                self._emit(clear_code, codebook.width)
                codebook.reset()
                self.epoch_codes = 0
            p, p_code = bytes((c,)), c_code

        self.prefix = p
        self.prefix_code = p_code

    def finish(self) -> None:
        """Emit the last match and terminate the code stream."""
        if self.prefix:
            self._emit(self.prefix_code, self.codebook.width)
            self.epoch_codes += 1
            self.prefix = b""
        self._write_end_marker()

    def _write_end_marker(self) -> None:
        """
        With narrow codes the final zero padding could hold a whole code 0.
        Cover it with CLEAR, which the decoder reads as end of data (or as
        a harmless reset under the RESET policy).
        """
        codebook = self.codebook
        width = codebook.read_width(self.epoch_codes > 0)
        while self.writer.pad_length() >= width:
            self._emit(self.ctx.clear_code, width)
            if self.ctx.policy is not Policy.RESET:
                break
            codebook.reset()
            self.epoch_codes = 0
            width = codebook.read_width(False)


class Decoder:
    """
    Rebuilds the encoder's table from the codes alone. Each phrase is
    learned one code later than on the encoder side.
    """

    def __init__(
        self,
        reader: BitReader,
        output_stream: BinaryIO,
        on_code: Optional[CodeCallback] = None,
    ):
        self.reader = reader
        self.output_stream = output_stream
        self.on_code = on_code
        self.ctx: Optional[RunContext] = None
        self.codebook: Optional[Codebook] = None
        self.codes_in = 0
        self.bytes_out = 0

    def run(self) -> None:
        self.ctx = read_header(self.reader)
        self.codebook = Codebook(self.ctx)
        out = bytearray()
        try:
            self._decode_codes(out)
        finally:
            self._flush(out)

    def _flush(self, out: bytearray) -> None:
        if out:
            self.output_stream.write(out)
            self.bytes_out += len(out)
            out.clear()

    def _read_code(self, width: int) -> Optional[int]:
        try:
            code = self.reader.read_bits_msb(width)
        except EndOfBitStream:
            return None
        except ShortRead as exc:
            raise UnexpectedEndOfStream(
                f"Code stream truncated after {self.codes_in} codes: {exc}"
            ) from exc
        self.codes_in += 1
        if self.on_code is not None:
            self.on_code(code, width)
        return code

    def _decode_codes(self, out: bytearray) -> None:
        ctx = self.ctx
        codebook = self.codebook
        tracks_usage = codebook.policy.tracks_usage
        prev: Optional[bytes] = None

        while True:
            width = codebook.read_width(prev is not None)
            code = self._read_code(width)
            if code is None:
                return

            if code == ctx.clear_code:
                if ctx.policy is Policy.RESET:
                    codebook.reset()
                    prev = None
                    continue
                if self.reader.at_padding():
                    return
                raise InvalidCodeReference(code, width, "CLEAR in a non-RESET stream")

            decision = codebook.admit() if prev is not None else None
            if isinstance(decision, Clear):
                raise InvalidCodeReference(code, width, "expected CLEAR on a full table")
            if isinstance(decision, (Insert, Evict)) and code == decision.code:
                cur = prev + prev[:1]
            else:
                cur = codebook.phrase(code)
                if cur is None:
                    raise InvalidCodeReference(code, width)

            out += cur
            if len(out) >= CHUNK_SIZE:
                self._flush(out)

            if prev is not None:
                codebook.insert(prev + cur[:1], decision)
            if tracks_usage:
                # the encoder looked up every prefix of cur while matching it
                for end in range(2, len(cur) + 1):
                    if codebook.lookup(cur[:end]) is None:
                        raise InvalidCodeReference(code, width, "phrase prefix missing")
            prev = cur


class AdaptiveLZWCompressor(Compressor):
    """
    LZW compressor with variable code width and a configurable policy
    for a full codebook.
    """

    def __init__(
        self,
        alphabet: Optional[Iterable[int]] = None,
        min_width: int = 9,
        max_width: int = 16,
        policy: Union[Policy, str, int] = Policy.FREEZE,
        verbose: bool = False,
        on_code: Optional[CodeCallback] = None,
    ):
        self.alphabet = default_alphabet() if alphabet is None else bytes(alphabet)
        self.min_width = min_width
        self.max_width = max_width
        self.policy = policy
        self.verbose = verbose
        self.on_code = on_code
        self._context: Optional[RunContext] = None

    @classmethod
    def from_context(
        cls,
        ctx: RunContext,
        verbose: bool = False,
        on_code: Optional[CodeCallback] = None,
    ) -> "AdaptiveLZWCompressor":
        """Build a compressor around an already validated context."""
        compressor = cls(
            ctx.alphabet, ctx.min_width, ctx.max_width, ctx.policy, verbose, on_code
        )
        compressor._context = ctx
        return compressor

    def run_context(self) -> RunContext:
        if self._context is None:
            self._context = RunContext.create(
                self.alphabet, self.min_width, self.max_width, self.policy
            )
        return self._context

    def compress(self, input_stream: BinaryIO, output_stream: BinaryIO) -> str:
        ctx = self.run_context()
        if self.verbose:
            print(
                f"LZW compress: policy={ctx.policy.name}, "
                f"widths {ctx.min_width}..{ctx.max_width}, alphabet of {ctx.size}"
            )

        writer = BitWriter(output_stream)
        encoder = Encoder(ctx, writer, on_code=self.on_code)
        try:
            encoder.start()
            for chunk in iter(lambda: input_stream.read(CHUNK_SIZE), b""):
                encoder.feed(chunk)
            encoder.finish()
        finally:
            writer.close()

        codebook = encoder.codebook
        log_info = (
            f"LZW compress: {encoder.bytes_in} bytes -> {writer.bit_count // 8} bytes, "
            f"{encoder.codes_out} codes, {codebook.resets} resets, "
            f"{codebook.evictions} evictions, final width {codebook.width}"
        )
        if self.verbose:
            print(log_info)
            if codebook.rejected:
                print(f"Table frozen, {codebook.rejected} phrases not learned")
        return log_info

    def decompress(self, input_stream: BinaryIO, output_stream: BinaryIO) -> str:
        decoder = Decoder(BitReader(input_stream), output_stream, on_code=self.on_code)
        decoder.run()

        ctx = decoder.ctx
        codebook = decoder.codebook
        log_info = (
            f"LZW expand: {decoder.codes_in} codes -> {decoder.bytes_out} bytes, "
            f"policy {ctx.policy.name}, {codebook.resets} resets, "
            f"{codebook.evictions} evictions"
        )
        if self.verbose:
            print(
                f"Header: widths {ctx.min_width}..{ctx.max_width}, "
                f"alphabet of {ctx.size}"
            )
            print(log_info)
        return log_info
