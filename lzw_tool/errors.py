"""
Exceptions raised by the adaptive LZW codec
"""


class LZWError(Exception):
    """Base class for every failure reported by the codec."""


class ConfigError(LZWError, ValueError):
    """
    Invalid run configuration: bad width range, missing option,
    unreadable alphabet source. Raised before any stream I/O.
    """


class EncodeError(LZWError):
    """Failure while compressing."""


class OutOfAlphabetSymbol(EncodeError):
    """Input byte that has no single-symbol entry in the codebook."""

    def __init__(self, symbol: int, offset: int):
        super().__init__(
            f"Byte 0x{symbol:02x} at offset {offset} is not in the alphabet"
        )
        self.symbol = symbol
        self.offset = offset


class DecodeError(LZWError):
    """Failure while expanding."""


class HeaderCorrupt(DecodeError):
    """The stream header is truncated or describes an impossible run."""


class UnexpectedEndOfStream(DecodeError, EOFError):
    """The code stream stops in the middle of a code."""


class InvalidCodeReference(DecodeError):
    """A code the decoder's table could not contain at this point."""

    def __init__(self, code: int, width: int, reason: str = ""):
        message = f"Invalid code {code} read on {width} bits"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.code = code
        self.width = width
