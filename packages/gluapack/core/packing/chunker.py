"""Size-bounded chunk splitter."""

from __future__ import annotations

import hashlib

from gluapack.core.consts import CHUNK_HASH_LENGTH, MAX_LUA_SIZE
from gluapack.core.models import Chunk, Realm
from gluapack.core.packing.wrapping import ChunkWrapper


def content_hash(data: bytes) -> bytes:
    """Truncated sha256 of the exact bytes of a chunk artifact."""
    return hashlib.sha256(data).digest()[:CHUNK_HASH_LENGTH]


def split_chunks(
    buffer: bytes,
    realm: Realm,
    wrapper: ChunkWrapper,
    ceiling: int = MAX_LUA_SIZE,
) -> list[Chunk]:
    """Split a realm buffer into wrapped chunks of at most ``ceiling`` bytes.

    Atomic units are never split across chunks; a new chunk is opened before
    any unit that would overflow. Unwrapping every chunk and concatenating
    the results in index order reproduces ``buffer`` exactly.

    Args:
        buffer: Encoded (and possibly compressed) realm buffer
        realm: Realm the chunks belong to; cacheable realms get content hashes
        wrapper: Wrap strategy
        ceiling: Maximum on-disk size of one chunk

    Returns:
        Chunks with contiguous 1-based indices (empty for an empty buffer)

    Raises:
        ValueError: If ceiling cannot hold the wrapper overhead plus one unit
    """
    overhead = len(wrapper.prefix) + len(wrapper.suffix)
    if ceiling < overhead + wrapper.max_unit:
        raise ValueError(f"Chunk ceiling {ceiling} is too small for {type(wrapper).__name__}")

    capacity = ceiling - len(wrapper.suffix)
    chunks: list[Chunk] = []
    current = bytearray(wrapper.prefix)

    def flush() -> None:
        nonlocal current
        data = bytes(current) + wrapper.suffix
        chunks.append(
            Chunk(
                index=len(chunks) + 1,
                realm=realm,
                wrapped_bytes=data,
                content_hash=content_hash(data) if realm.is_cacheable else None,
            )
        )
        current = bytearray(wrapper.prefix)

    for unit, divisible in wrapper.units(buffer):
        if not divisible:
            if len(current) + len(unit) > capacity:
                flush()
            current += unit
            continue

        view = memoryview(unit)
        while view:
            room = capacity - len(current)
            if room <= 0:
                flush()
                continue
            current += view[:room]
            view = view[room:]

    if len(current) > len(wrapper.prefix):
        flush()
    return chunks


def unwrap_chunks(chunks: list[bytes], wrapper: ChunkWrapper) -> bytes:
    """Reverse split_chunks() given chunk artifacts in index order."""
    return b"".join(wrapper.unwrap(chunk) for chunk in chunks)
