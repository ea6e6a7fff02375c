"""
Command-line entry point: compress or expand a stream

    lzw-tool --mode compress --alphabet alphabet.txt --policy lru < in > out
    lzw-tool --mode expand < out > in
"""
import argparse
import contextlib
import sys
from typing import BinaryIO, Callable, List, Optional

from .alphabet import load_alphabet
from .errors import ConfigError, LZWError
from .header import Policy, RunContext
from .LZW import AdaptiveLZWCompressor

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_CODEC = 2


class ArgumentParser(argparse.ArgumentParser):
    """Reports bad options as ConfigError instead of exiting."""

    def error(self, message):
        raise ConfigError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = ArgumentParser(
        prog="lzw-tool", description="Adaptive LZW compression"
    )
    parser.add_argument("--mode", choices=["compress", "expand"])
    parser.add_argument("--minW", dest="min_width", type=int, default=9)
    parser.add_argument("--maxW", dest="max_width", type=int, default=16)
    parser.add_argument(
        "--policy",
        default="freeze",
        type=str.lower,
        choices=[p.name.lower() for p in Policy],
    )
    parser.add_argument("--alphabet", help="alphabet file, required to compress")
    parser.add_argument("--input", help="input file (default: stdin)")
    parser.add_argument("--output", help="output file (default: stdout)")
    parser.add_argument("--verbose", action="store_true")
    return parser


def configure(args: argparse.Namespace) -> AdaptiveLZWCompressor:
    """Turn parsed options into a compressor, validating before any I/O."""
    if args.mode is None:
        raise ConfigError("Mode required.")
    if args.mode == "expand":
        return AdaptiveLZWCompressor(verbose=args.verbose)
    if args.alphabet is None:
        raise ConfigError("Alphabet path required.")
    alphabet = load_alphabet(args.alphabet)
    ctx = RunContext.create(alphabet, args.min_width, args.max_width, args.policy)
    return AdaptiveLZWCompressor.from_context(ctx, verbose=args.verbose)


def _open(path: Optional[str], mode: str, default: Callable[[], BinaryIO]):
    if path is None:
        return contextlib.nullcontext(default())
    return open(path, mode)


def run(args: argparse.Namespace) -> str:
    compressor = configure(args)
    with _open(args.input, "rb", lambda: sys.stdin.buffer) as in_stream, \
            _open(args.output, "wb", lambda: sys.stdout.buffer) as out_stream:
        # keep stdout a clean data stream
        with contextlib.redirect_stdout(sys.stderr):
            if args.mode == "compress":
                return compressor.compress(in_stream, out_stream)
            return compressor.decompress(in_stream, out_stream)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        run(build_parser().parse_args(argv))
    except ConfigError as exc:
        print(f"Fatal error: {exc}", file=sys.stderr)
        return EXIT_CONFIG
    except OSError as exc:
        # unusable --input or --output path
        print(f"Fatal error: {exc}", file=sys.stderr)
        return EXIT_CONFIG
    except LZWError as exc:
        print(f"Fatal error: {exc}", file=sys.stderr)
        return EXIT_CODEC
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
