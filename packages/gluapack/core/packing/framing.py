"""Frame codecs: serialize a realm's files into one buffer and back.

Two formats exist:

* Binary (Server): ``path, 0x00, u32le(len), content``
* Delimited hex (Client/Shared): ``path, '|', lowerhex(len), '|', content``

Client-side the buffer is read as a NUL-terminated string, so the
delimited format avoids NUL entirely and spells lengths in hex ASCII.

A buffer carries no trailer. End-of-stream is an empty path token with no
bytes remaining; any other malformed token raises.
"""

from __future__ import annotations

import re
import struct
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator

from gluapack.core.consts import TERMINATOR_HACK
from gluapack.core.errors import FormatError, PackingError, Utf8Error
from gluapack.core.models import Realm, ScriptFile

_U32 = struct.Struct("<I")
_U32_MAX = 0xFFFFFFFF
_HEX_RE = re.compile(rb"[0-9a-fA-F]+")


def _decode_utf8(token: bytes, what: str, offset: int) -> str:
    try:
        return token.decode("utf-8")
    except UnicodeDecodeError as e:
        raise Utf8Error(f"UTF-8 error: invalid {what} at offset {offset}: {e}") from e


class FrameCodec(ABC):
    """Encodes ScriptFiles into a single buffer and decodes them back."""

    #: Byte terminating the path token
    delimiter: bytes

    def _encode_path(self, file: ScriptFile) -> bytes:
        try:
            path = file.path.encode("utf-8")
        except UnicodeEncodeError as e:
            raise PackingError(f"Cannot pack {file.path!r}: path is not valid UTF-8") from e
        if not path:
            raise PackingError("Cannot pack a file with an empty path")
        if self.delimiter in path:
            raise PackingError(
                f"Cannot pack {file.path!r}: path contains the frame delimiter {self.delimiter!r}"
            )
        if len(file.contents) > _U32_MAX:
            raise PackingError(f"Cannot pack {file.path!r}: file is larger than 4 GiB")
        return path

    def encode(self, files: Iterable[ScriptFile]) -> bytes:
        """Concatenate frames for files, in the given order."""
        parts: list[bytes] = []
        for file in files:
            parts.append(self._encode_path(file))
            parts.append(self.delimiter)
            parts.append(self._encode_length(len(file.contents)))
            parts.append(file.contents)
        return b"".join(parts)

    def decode(self, buffer: bytes) -> Iterator[ScriptFile]:
        """Yield files framed in buffer until end-of-stream.

        Raises:
            FormatError: On a missing delimiter, bad length or truncated content
            Utf8Error: If a path or length token is not valid UTF-8
        """
        view = memoryview(buffer)
        pos = 0
        end = len(buffer)
        while pos < end:
            cut = buffer.find(self.delimiter, pos)
            if cut == -1:
                raise FormatError(f"Missing path delimiter after offset {pos}")
            if cut == pos:
                raise FormatError(f"Empty path token at offset {pos}")
            path = _decode_utf8(buffer[pos:cut], "path", pos)

            length, pos = self._decode_length(buffer, cut + 1)
            if pos + length > end:
                raise FormatError(
                    f"{path}: declared length {length} runs past the end of the buffer"
                )
            yield ScriptFile(path=path, contents=bytes(view[pos : pos + length]))
            pos += length

    @abstractmethod
    def _encode_length(self, length: int) -> bytes: ...

    @abstractmethod
    def _decode_length(self, buffer: bytes, pos: int) -> tuple[int, int]:
        """Parse the length field at pos, returning (length, content offset)."""


class BinaryFrameCodec(FrameCodec):
    """Server realm frames: NUL-terminated path and a little-endian u32 length."""

    delimiter = b"\x00"

    def _encode_length(self, length: int) -> bytes:
        return _U32.pack(length)

    def _decode_length(self, buffer: bytes, pos: int) -> tuple[int, int]:
        if pos + _U32.size > len(buffer):
            raise FormatError(f"Truncated length field at offset {pos}")
        (length,) = _U32.unpack_from(buffer, pos)
        return length, pos + _U32.size


class DelimitedHexFrameCodec(FrameCodec):
    """Client/Shared realm frames: ``|``-delimited path and hex length."""

    delimiter = TERMINATOR_HACK

    def _encode_length(self, length: int) -> bytes:
        return format(length, "x").encode("ascii") + self.delimiter

    def _decode_length(self, buffer: bytes, pos: int) -> tuple[int, int]:
        cut = buffer.find(self.delimiter, pos)
        if cut == -1:
            raise FormatError(f"Missing length delimiter after offset {pos}")
        token = buffer[pos:cut]
        text = _decode_utf8(token, "length", pos)
        if not _HEX_RE.fullmatch(token):
            raise FormatError(f"File format error: invalid hex length {text!r} at offset {pos}")
        return int(text, 16), cut + 1


_BINARY = BinaryFrameCodec()
_DELIMITED = DelimitedHexFrameCodec()


def codec_for(realm: Realm) -> FrameCodec:
    """Return the frame codec used by a realm."""
    return _DELIMITED if realm.is_cacheable else _BINARY
