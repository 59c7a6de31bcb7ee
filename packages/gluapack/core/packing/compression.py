"""LZMA compression of cacheable realm buffers.

Uses the legacy ``.lzma`` ("alone") container, the format the game's
``util.Decompress`` reads.
"""

from __future__ import annotations

import logging
import lzma

from gluapack.core.config.models import CompressionMode
from gluapack.core.errors import CompressionError, FormatError

logger = logging.getLogger(__name__)

_FILTERS = [{"id": lzma.FILTER_LZMA1, "preset": 9}]


def compress(buffer: bytes, mode: CompressionMode) -> bytes:
    """Compress a realm buffer.

    Raises:
        CompressionError: If the compressor fails
    """
    if mode is CompressionMode.NONE or not buffer:
        return buffer
    try:
        compressed = lzma.compress(buffer, format=lzma.FORMAT_ALONE, filters=_FILTERS)
    except lzma.LZMAError as e:
        raise CompressionError(f"LZMA compression failed: {e}") from e
    logger.debug("Compressed %d bytes to %d bytes", len(buffer), len(compressed))
    return compressed


def decompress(buffer: bytes, mode: CompressionMode) -> bytes:
    """Reverse compress().

    Raises:
        FormatError: If the buffer is not a valid compressed stream
    """
    if mode is CompressionMode.NONE or not buffer:
        return buffer
    try:
        return lzma.decompress(buffer, format=lzma.FORMAT_ALONE)
    except lzma.LZMAError as e:
        raise FormatError(f"Corrupt LZMA stream: {e}") from e
