from abc import ABC, abstractmethod
import io
from typing import BinaryIO, Tuple


class Compressor(ABC):
    """
    Stream codec with file and in-memory helpers.

    The helpers build a fresh codec per call from their keyword options,
    which go straight to the constructor. For AdaptiveLZWCompressor these
    are ``alphabet``, ``min_width``, ``max_width``, ``policy``, ``verbose``
    and ``on_code``. Expanding needs none of the layout options since the
    stream header carries them.
    """

    @abstractmethod
    def compress(self, input_stream: BinaryIO, output_stream: BinaryIO) -> str:
        """Encode everything readable from input_stream; return a log line."""

    @abstractmethod
    def decompress(self, input_stream: BinaryIO, output_stream: BinaryIO) -> str:
        """Decode one complete stream from input_stream; return a log line."""

    @classmethod
    def compress_file(cls, input_file: str, output_file: str, **options) -> str:
        with open(input_file, 'rb') as in_file, open(output_file, 'wb') as out_file:
            return cls(**options).compress(in_file, out_file)

    @classmethod
    def decompress_file(cls, input_file: str, output_file: str, **options) -> str:
        with open(input_file, 'rb') as in_file, open(output_file, 'wb') as out_file:
            return cls(**options).decompress(in_file, out_file)

    @classmethod
    def compress_bytes(cls, data: bytes, **options) -> Tuple[bytes, str]:
        """
        Returns:
            Tuple (stream bytes with header, compression info)
        """
        out_buffer = io.BytesIO()
        log_info = cls(**options).compress(io.BytesIO(data), out_buffer)
        return out_buffer.getvalue(), log_info

    @classmethod
    def decompress_bytes(cls, data: bytes, **options) -> Tuple[bytes, str]:
        """
        Returns:
            Tuple (expanded data, decompression info)
        """
        out_buffer = io.BytesIO()
        log_info = cls(**options).decompress(io.BytesIO(data), out_buffer)
        return out_buffer.getvalue(), log_info
