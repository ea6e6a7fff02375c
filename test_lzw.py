import io
import random

import pytest

from lzw_tool.alphabet import default_alphabet
from lzw_tool.bit_utils.bit_reader import BitReader
from lzw_tool.bit_utils.bit_writer import BitWriter
from lzw_tool.errors import (
    HeaderCorrupt,
    InvalidCodeReference,
    OutOfAlphabetSymbol,
    UnexpectedEndOfStream,
)
from lzw_tool.header import Policy, RunContext, write_header
from lzw_tool.LZW import AdaptiveLZWCompressor, Decoder, Encoder

TEXT = (
    b"It was the best of times, it was the worst of times, it was the age of "
    b"wisdom, it was the age of foolishness, it was the epoch of belief, it "
    b"was the epoch of incredulity, it was the season of Light, it was the "
    b"season of Darkness, it was the spring of hope, it was the winter of "
    b"despair.\n"
) * 12


def noise(size, seed=0, symbols=None):
    rng = random.Random(seed)
    if symbols is None:
        return bytes(rng.getrandbits(8) for _ in range(size))
    return bytes(rng.choice(symbols) for _ in range(size))


def mixed(size=6000):
    return TEXT[: size // 2] + noise(size // 4, seed=1) + TEXT[: size // 4]


def encode(data, ctx):
    """Run the encoder directly; returns (packed bytes, encoder, [(code, width)])."""
    out = io.BytesIO()
    writer = BitWriter(out)
    emitted = []
    encoder = Encoder(ctx, writer, on_code=lambda c, w: emitted.append((c, w)))
    encoder.start()
    encoder.feed(data)
    encoder.finish()
    writer.close()
    return out.getvalue(), encoder, emitted


def decode(packed):
    out = io.BytesIO()
    read = []
    decoder = Decoder(
        BitReader(io.BytesIO(packed)), out, on_code=lambda c, w: read.append((c, w))
    )
    decoder.run()
    return out.getvalue(), decoder, read


def roundtrip(data, **options):
    packed, _ = AdaptiveLZWCompressor.compress_bytes(data, **options)
    unpacked, _ = AdaptiveLZWCompressor.decompress_bytes(packed)
    return packed, unpacked


@pytest.mark.parametrize("policy", list(Policy))
@pytest.mark.parametrize(
    "min_width,max_width", [(9, 9), (9, 10), (1, 9), (3, 11), (9, 12), (12, 16), (16, 16)]
)
@pytest.mark.parametrize("data", [TEXT, noise(3000), mixed()], ids=["text", "noise", "mixed"])
def test_round_trip(policy, min_width, max_width, data):
    _, unpacked = roundtrip(
        data, min_width=min_width, max_width=max_width, policy=policy
    )
    assert unpacked == data


@pytest.mark.parametrize("policy", list(Policy))
@pytest.mark.parametrize(
    "min_width,max_width",
    [(lo, hi) for hi in range(2, 7) for lo in range(1, hi + 1)],
)
def test_round_trip_small_alphabet(policy, min_width, max_width):
    data = noise(400, seed=max_width * 7 + min_width, symbols=b"ab")
    for sample in (data, data + b"a", b"a", b"b" * 33):
        _, unpacked = roundtrip(
            sample, alphabet=b"ab", min_width=min_width, max_width=max_width, policy=policy
        )
        assert unpacked == sample


@pytest.mark.parametrize("policy", list(Policy))
def test_single_symbol_alphabet_with_one_bit_codes(policy):
    data = b"a" * 29
    _, unpacked = roundtrip(data, alphabet=b"a", min_width=1, max_width=1, policy=policy)
    assert unpacked == data


def test_header_is_deterministic():
    first, _ = AdaptiveLZWCompressor.compress_bytes(TEXT, policy="lru")
    second, _ = AdaptiveLZWCompressor.compress_bytes(TEXT, policy="lru")
    assert first == second
    ctx = RunContext.create(default_alphabet(), 9, 16, Policy.LRU)
    assert first[: ctx.header_bits() // 8] == second[: ctx.header_bits() // 8]


def test_scenario_a_repeated_symbol():
    alphabet = bytes(dict.fromkeys(b"ab" + bytes(range(256))))
    ctx = RunContext.create(alphabet, 9, 9, Policy.FREEZE)
    packed, _, emitted = encode(b"aaaaaa", ctx)
    assert emitted == [(0, 9), (257, 9), (258, 9)]
    unpacked, _, _ = decode(packed)
    assert unpacked == b"aaaaaa"


def test_scenario_b_empty_input_writes_header_only():
    packed, log_info = AdaptiveLZWCompressor.compress_bytes(b"")
    ctx = RunContext.create(default_alphabet())
    assert len(packed) == (ctx.header_bits() + 7) // 8
    assert "0 codes" in log_info
    unpacked, _ = AdaptiveLZWCompressor.decompress_bytes(packed)
    assert unpacked == b""


def test_scenario_c_reset_emits_clear_and_round_trips():
    ctx = RunContext.create(default_alphabet(), 9, 10, Policy.RESET)
    data = noise(6000, seed=3)
    clears = []
    encoder = None

    def check(code, width):
        if clears and clears[-1] == "pending":
            # first code after a CLEAR: table holds exactly the alphabet
            assert len(encoder.codebook) == ctx.size
            assert encoder.codebook.learned() == {}
            assert width == ctx.initial_width
            clears[-1] = "done"
        if code == ctx.clear_code:
            assert encoder.codebook.full
            assert width == ctx.max_width
            clears.append("pending")

    out = io.BytesIO()
    writer = BitWriter(out)
    encoder = Encoder(ctx, writer, on_code=check)
    encoder.start()
    encoder.feed(data)
    encoder.finish()
    writer.close()

    assert len(clears) >= 1
    assert encoder.codebook.resets == len(clears)
    unpacked, decoder, read = decode(out.getvalue())
    assert unpacked == data
    assert decoder.codebook.resets == len(clears)
    assert sum(1 for c, _ in read if c == ctx.clear_code) == len(clears)


def test_scenario_d_empty_alphabet_header():
    out = io.BytesIO()
    writer = BitWriter(out)
    for value, length in ((0, 2), (9, 5), (9, 5), (0, 16), (97, 9)):
        writer.write_bits_msb(value, length)
    writer.close()

    expanded = io.BytesIO()
    with pytest.raises(HeaderCorrupt):
        AdaptiveLZWCompressor().decompress(io.BytesIO(out.getvalue()), expanded)
    assert expanded.getvalue() == b""


@pytest.mark.parametrize("policy", [Policy.FREEZE, Policy.LRU, Policy.LFU])
def test_width_is_monotonic_and_codes_fit(policy):
    ctx = RunContext.create(default_alphabet(), 9, 12, policy)
    _, _, emitted = encode(mixed(20000), ctx)
    widths = [w for _, w in emitted]
    assert widths == sorted(widths)
    assert all(9 <= w <= 12 for w in widths)
    assert all(code < 1 << width for code, width in emitted)
    assert widths[-1] == 12


def test_width_is_monotonic_within_reset_epochs():
    ctx = RunContext.create(default_alphabet(), 9, 11, Policy.RESET)
    _, _, emitted = encode(noise(20000, seed=5), ctx)
    epoch = []
    for code, width in emitted:
        assert code < 1 << width
        epoch.append(width)
        assert epoch == sorted(epoch)
        assert 9 <= width <= 11
        if code == ctx.clear_code:
            epoch = []


def test_freeze_saturation():
    ctx = RunContext.create(default_alphabet(), 9, 9, Policy.FREEZE)
    data = noise(8000, seed=9) + TEXT
    packed, encoder, emitted = encode(data, ctx)
    codebook = encoder.codebook
    assert len(codebook) == ctx.capacity
    assert codebook.rejected > 0
    assert all(code < ctx.limit and code != ctx.clear_code for code, _ in emitted)
    unpacked, decoder, _ = decode(packed)
    assert unpacked == data
    assert decoder.codebook.code_to_phrase == codebook.code_to_phrase


@pytest.mark.parametrize("policy", [Policy.LRU, Policy.LFU])
def test_eviction_churn_keeps_tables_in_step(policy):
    ctx = RunContext.create(default_alphabet(), 9, 9, policy)
    data = noise(5000, seed=11) + TEXT + noise(3000, seed=12) + TEXT
    packed, encoder, _ = encode(data, ctx)
    assert encoder.codebook.evictions > 0
    unpacked, decoder, _ = decode(packed)
    assert unpacked == data
    assert decoder.codebook.code_to_phrase == encoder.codebook.code_to_phrase
    assert decoder.codebook.phrase_to_code == encoder.codebook.phrase_to_code
    enc_tracker = encoder.codebook.policy.tracker
    dec_tracker = decoder.codebook.policy.tracker
    if policy is Policy.LRU:
        assert list(dec_tracker.order) == list(enc_tracker.order)
    else:
        assert dec_tracker.freq == enc_tracker.freq


def test_code_equal_to_freshly_evicted_slot():
    ctx = RunContext.create(b"ab", 2, 2, Policy.LRU)
    packed, _, emitted = encode(b"abaaa", ctx)
    assert [c for c, _ in emitted[:4]] == [0, 1, 0, 3]
    unpacked, _, _ = decode(packed)
    assert unpacked == b"abaaa"


def test_end_marker_covers_wide_padding():
    ctx = RunContext.create(b"ab", 2, 2, Policy.FREEZE)
    packed, _, emitted = encode(b"a", ctx)
    assert emitted == [(0, 2), (ctx.clear_code, 2)]
    assert len(packed) * 8 == ctx.header_bits() + 4
    unpacked, _, _ = decode(packed)
    assert unpacked == b"a"


def test_no_end_marker_with_byte_wide_codes():
    ctx = RunContext.create(default_alphabet(), 9, 16, Policy.FREEZE)
    _, _, emitted = encode(TEXT, ctx)
    assert ctx.clear_code not in [c for c, _ in emitted]


def test_out_of_alphabet_symbol():
    with pytest.raises(OutOfAlphabetSymbol) as info:
        AdaptiveLZWCompressor.compress_bytes(b"abba!", alphabet=b"ab", min_width=2, max_width=4)
    assert info.value.symbol == ord("!")
    assert info.value.offset == 4


def test_truncated_stream_keeps_partial_output():
    data = TEXT[:400]
    packed, _ = AdaptiveLZWCompressor.compress_bytes(data, min_width=16, max_width=16)
    out = io.BytesIO()
    with pytest.raises(UnexpectedEndOfStream):
        AdaptiveLZWCompressor().decompress(io.BytesIO(packed[:-1]), out)
    partial = out.getvalue()
    assert partial
    assert data.startswith(partial)
    assert len(partial) < len(data)


def stream_with_codes(ctx, codes):
    out = io.BytesIO()
    writer = BitWriter(out)
    write_header(writer, ctx)
    for code, width in codes:
        writer.write_bits_msb(code, width)
    writer.close()
    return out.getvalue()


def test_code_beyond_table_is_rejected():
    ctx = RunContext.create(default_alphabet(), 9, 9, Policy.FREEZE)
    with pytest.raises(InvalidCodeReference) as info:
        decode(stream_with_codes(ctx, [(97, 9), (300, 9)]))
    assert info.value.code == 300


def test_first_code_must_be_a_symbol():
    ctx = RunContext.create(default_alphabet(), 9, 9, Policy.LRU)
    with pytest.raises(InvalidCodeReference):
        decode(stream_with_codes(ctx, [(257, 9)]))


def test_clear_inside_a_freeze_stream_is_rejected():
    ctx = RunContext.create(default_alphabet(), 9, 9, Policy.FREEZE)
    with pytest.raises(InvalidCodeReference):
        decode(stream_with_codes(ctx, [(97, 9), (256, 9), (98, 9)]))


def test_missing_clear_on_full_reset_table_is_rejected():
    ctx = RunContext.create(b"ab", 2, 2, Policy.RESET)
    # 0, 1 fills the single slot; the encoder would now have to send CLEAR
    with pytest.raises(InvalidCodeReference):
        decode(stream_with_codes(ctx, [(0, 2), (1, 2), (0, 2), (1, 2)]))


def test_compress_log_and_verbose(capsys):
    compressor = AdaptiveLZWCompressor(policy="reset", max_width=9, verbose=True)
    out = io.BytesIO()
    log_info = compressor.compress(io.BytesIO(noise(4000, seed=2)), out)
    assert log_info.startswith("LZW compress: 4000 bytes ->")
    assert f"{len(out.getvalue())} bytes" in log_info
    printed = capsys.readouterr().out
    assert "policy=RESET" in printed
    assert log_info in printed

    expand_log = AdaptiveLZWCompressor(verbose=True).decompress(
        io.BytesIO(out.getvalue()), io.BytesIO()
    )
    assert "-> 4000 bytes" in expand_log
    assert "Header: widths 9..9" in capsys.readouterr().out


def test_file_helpers(tmp_path):
    source = tmp_path / "input.bin"
    source.write_bytes(mixed(3000))
    packed = tmp_path / "input.lzw"
    restored = tmp_path / "restored.bin"
    AdaptiveLZWCompressor.compress_file(str(source), str(packed), policy="lfu", max_width=10)
    AdaptiveLZWCompressor.decompress_file(str(packed), str(restored))
    assert restored.read_bytes() == source.read_bytes()


def test_from_context_reuses_validated_context():
    ctx = RunContext.create(b"ab", 2, 4, "lru")
    compressor = AdaptiveLZWCompressor.from_context(ctx)
    assert compressor.run_context() is ctx
    out = io.BytesIO()
    compressor.compress(io.BytesIO(b"abababba" * 20), out)
    packed, _ = AdaptiveLZWCompressor.compress_bytes(
        b"abababba" * 20, alphabet=b"ab", min_width=2, max_width=4, policy="lru"
    )
    assert out.getvalue() == packed
