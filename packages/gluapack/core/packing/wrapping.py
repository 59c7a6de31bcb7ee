"""Chunk wrappers: make slices of a realm buffer valid, inert Lua source.

A wrapper tokenizes a buffer into units. Atomic units must land in a
single chunk; divisible units are runs of pass-through bytes that may be
split anywhere. Every chunk is ``prefix + units + suffix``.

Two wrappers exist:

* ``LineCommentWrapper``: every line is a ``--`` comment.
* ``EscapedLiteralWrapper``: the chunk is ``return"<escaped bytes>"``.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterator

from gluapack.core.config.models import WrapMode
from gluapack.core.errors import FormatError

#: (wrapped bytes, divisible)
Unit = tuple[bytes, bool]


class ChunkWrapper(ABC):
    """Wraps and unwraps chunk contents."""

    mode: WrapMode
    prefix: bytes
    suffix: bytes = b""

    #: Longest atomic unit units() can yield
    max_unit: int

    @abstractmethod
    def units(self, buffer: bytes) -> Iterator[Unit]:
        """Tokenize a raw buffer into wrapped units."""

    @abstractmethod
    def unwrap(self, chunk: bytes) -> bytes:
        """Recover the raw bytes of one wrapped chunk.

        Raises:
            FormatError: If chunk was not produced by this wrapper
        """

    def wrap(self, buffer: bytes) -> bytes:
        """Wrap a whole buffer as one unbounded chunk."""
        return self.prefix + b"".join(u for u, _ in self.units(buffer)) + self.suffix


class LineCommentWrapper(ChunkWrapper):
    """Prefix every line with ``--``.

    CR and LF both end a Lua comment, so each line break (``\\r\\n``, ``\\n``
    or a bare ``\\r``) is followed by a fresh marker, atomically.
    """

    mode = WrapMode.COMMENT
    prefix = b"--"
    max_unit = 4

    _TOKEN_RE = re.compile(rb"\r\n|\r|\n|[^\r\n]+")
    _BREAK_RE = re.compile(rb"(\r\n|\r|\n)")

    def units(self, buffer: bytes) -> Iterator[Unit]:
        for match in self._TOKEN_RE.finditer(buffer):
            token = match.group()
            if token[0] in b"\r\n":
                yield token + self.prefix, False
            else:
                yield token, True

    def unwrap(self, chunk: bytes) -> bytes:
        if not chunk.startswith(self.prefix):
            raise FormatError("Chunk does not start with a comment marker")

        parts = self._BREAK_RE.split(chunk[len(self.prefix) :])
        # parts alternates text, line break, text, ...
        for i in range(2, len(parts), 2):
            if not parts[i].startswith(self.prefix):
                raise FormatError("Line break not followed by a comment marker")
            parts[i] = parts[i][len(self.prefix) :]
        return b"".join(parts)


def _build_escape_table() -> list[bytes | None]:
    table: list[bytes | None] = [None] * 256
    numeric = set(range(0x00, 0x21)) | {0x7F} | set(b"0123456789eExX.-")
    for byte in numeric:
        table[byte] = b"\\" + str(byte).encode("ascii")
    table[ord("\n")] = b"\\n"
    table[ord("\\")] = b"\\\\"
    table[ord('"')] = b'\\"'
    return table


_ESCAPE_TABLE = _build_escape_table()

# Runs of bytes that need no escaping
_PLAIN_RE = re.compile(
    b"[^" + b"".join(b"\\x%02x" % b for b in range(256) if _ESCAPE_TABLE[b]) + b"]+"
)


class EscapedLiteralWrapper(ChunkWrapper):
    """Emit the chunk as ``return"..."`` with every unsafe byte escaped.

    Whitespace, control bytes, digits and ``eExX.-`` become decimal escapes
    (``\\9``), so a following byte can never extend an escape or be read as
    part of a number.
    """

    mode = WrapMode.LITERAL
    prefix = b'return"'
    suffix = b'"'
    max_unit = 4

    _TOKEN_RE = re.compile(rb"\\(?:(\d{1,3})|(.))|([^\\]+)", re.DOTALL)

    def units(self, buffer: bytes) -> Iterator[Unit]:
        pos = 0
        end = len(buffer)
        while pos < end:
            match = _PLAIN_RE.match(buffer, pos)
            if match:
                yield match.group(), True
                pos = match.end()
                continue
            escaped = _ESCAPE_TABLE[buffer[pos]]
            assert escaped is not None
            yield escaped, False
            pos += 1

    def unwrap(self, chunk: bytes) -> bytes:
        if not chunk.startswith(self.prefix) or not chunk.endswith(self.suffix):
            raise FormatError("Chunk is not a returned string literal")
        if len(chunk) < len(self.prefix) + len(self.suffix):
            raise FormatError("Chunk is truncated")

        body = chunk[len(self.prefix) : len(chunk) - len(self.suffix)]
        out = bytearray()
        pos = 0
        for match in self._TOKEN_RE.finditer(body):
            if match.start() != pos:
                break
            pos = match.end()

            decimal, char, plain = match.groups()
            if plain is not None:
                if b'"' in plain:
                    raise FormatError("Unescaped quote inside chunk literal")
                out += plain
            elif decimal is not None:
                value = int(decimal)
                if value > 0xFF:
                    raise FormatError(f"Decimal escape out of range: \\{value}")
                out.append(value)
            elif char == b"n":
                out += b"\n"
            elif char in (b"\\", b'"'):
                out += char
            else:
                raise FormatError(f"Unknown escape sequence: \\{char!r}")

        if pos != len(body):
            raise FormatError("Dangling backslash at end of chunk literal")
        return bytes(out)


_WRAPPERS: dict[WrapMode, ChunkWrapper] = {
    WrapMode.COMMENT: LineCommentWrapper(),
    WrapMode.LITERAL: EscapedLiteralWrapper(),
}


def wrapper_for(mode: WrapMode) -> ChunkWrapper:
    """Return the chunk wrapper for a wrap mode."""
    return _WRAPPERS[mode]
