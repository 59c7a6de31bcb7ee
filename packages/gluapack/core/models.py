"""Core data models for packing and unpacking."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from gluapack.core.consts import chunk_file_name
from gluapack.core.utils.formatting import format_file_size


class Realm(str, Enum):
    """Execution context a script belongs to.

    The value doubles as the realm's artifact suffix (``*.sv.lua`` etc).
    """

    SERVER = "sv"
    CLIENT = "cl"
    SHARED = "sh"

    @property
    def is_cacheable(self) -> bool:
        """Whether the realm is networked to clients (chunked, hashed)."""
        return self is not Realm.SERVER


@dataclass(frozen=True, eq=False)
class ScriptFile:
    """A script path and its opaque contents.

    Equality and hashing use the path only.
    """

    path: str
    contents: bytes = field(repr=False)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ScriptFile) and other.path == self.path

    def __hash__(self) -> int:
        return hash(self.path)

    def __lt__(self, other: ScriptFile) -> bool:
        return self.path < other.path


@dataclass
class RealmFileSet:
    """Ordered, path-unique files collected for one realm.

    Attributes:
        realm: Realm the files belong to
        files: Files in collection order
        entry_paths: Paths that also match the realm's entry patterns
    """

    realm: Realm
    files: list[ScriptFile] = field(default_factory=list)
    entry_paths: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.files)

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    @property
    def total_size(self) -> int:
        return sum(len(f.contents) for f in self.files)


class Chunk(BaseModel):
    """A size-bounded, wrapped slice of a realm buffer (one artifact file)."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=1, description="1-based chunk index")
    realm: Realm
    wrapped_bytes: bytes = Field(repr=False, description="Exact on-disk bytes")
    content_hash: bytes | None = Field(
        default=None, repr=False, description="Truncated digest of wrapped_bytes"
    )

    @property
    def file_name(self) -> str:
        return chunk_file_name(self.index, self.realm.value)

    @property
    def hex_digest(self) -> str | None:
        return self.content_hash.hex() if self.content_hash is not None else None


def _pct_change(before: int, after: int) -> str:
    if before == 0:
        return "0.00%"
    pct = (before - after) / before * 100.0
    sign = "" if pct == 0 else ("-" if pct > 0 else "+")
    return f"{sign}{abs(pct):.2f}%"


class RunStatistics(BaseModel):
    """Summary of a pack or unpack run.

    Attributes:
        total_unpacked_files: Number of individual script files
        total_packed_files: Number of artifact files
        total_unpacked_size: Bytes of individual script contents
        total_packed_size: Bytes of artifact files
        elapsed_s: Wall-clock duration in seconds
    """

    total_unpacked_files: int = 0
    total_packed_files: int = 0
    total_unpacked_size: int = 0
    total_packed_size: int = 0
    elapsed_s: float = 0.0

    def files(self) -> str:
        return (
            f"{self.total_unpacked_files} files -> {self.total_packed_files} file(s) "
            f"({_pct_change(self.total_unpacked_files, self.total_packed_files)})"
        )

    def size(self) -> str:
        return (
            f"{format_file_size(self.total_unpacked_size)} -> "
            f"{format_file_size(self.total_packed_size)} "
            f"({_pct_change(self.total_unpacked_size, self.total_packed_size)})"
        )

    def elapsed(self) -> str:
        return f"{self.elapsed_s:.3f}s"


class PackStatistics(RunStatistics):
    """Statistics of a pack run."""

    version_id: str = ""


class UnpackStatistics(RunStatistics):
    """Statistics of an unpack run."""
