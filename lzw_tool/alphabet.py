"""
Alphabet loading

The alphabet file lists one symbol per line; the first byte of each
non-empty line is taken. All 256 byte values are appended afterwards so
any binary input can be encoded.
"""
import os

from .errors import ConfigError


def default_alphabet() -> bytes:
    return bytes(range(256))


def load_alphabet(path: str) -> bytes:
    """
    Build the ordered symbol list from a text file.

    :param path: path to the alphabet file
    :return: bytes, distinct symbols in first-seen order, then 0..255
    """
    if not os.path.isfile(path):
        raise ConfigError(f"Alphabet not found: {path}")
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as exc:
        raise ConfigError(f"Error reading alphabet: {path}") from exc

    symbols = dict.fromkeys(line[0] for line in data.splitlines() if line)
    symbols.update(dict.fromkeys(range(256)))
    return bytes(symbols)
