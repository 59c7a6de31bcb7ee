"""Configuration models for gluapack."""

from __future__ import annotations

import re
from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from gluapack.core.globbing import GlobPattern

# unique_id ends up in directory and file names
_UNIQUE_ID_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class WrapMode(str, Enum):
    """How chunk contents are made loadable as Lua source."""

    COMMENT = "comment"
    LITERAL = "literal"


class CompressionMode(str, Enum):
    """Compression applied to cacheable realm buffers before splitting."""

    NONE = "none"
    LZMA = "lzma"


def _patterns(*values: str):
    return Field(default_factory=lambda: list(values))


class PackConfig(BaseModel):
    """Per-addon packing configuration (``gluapack.json``).

    Pattern lists are relative to the addon's ``lua/`` directory.

    Example:
        >>> config = PackConfig.model_validate({"exclude": ["tests/**"]})
        >>> config.include_sh
        ['**/sh_*.lua', '**/*.sh.lua']
    """

    model_config = ConfigDict(extra="forbid")

    include_sh: list[str] = _patterns("**/sh_*.lua", "**/*.sh.lua")
    include_cl: list[str] = _patterns("**/cl_*.lua", "**/*.cl.lua", "vgui/*.lua")
    include_sv: list[str] = _patterns("**/sv_*.lua", "**/*.sv.lua")
    exclude: list[str] = Field(default_factory=list)

    entry_cl: list[str] = _patterns("autorun/client/*.lua", "vgui/*.lua")
    entry_sh: list[str] = _patterns("autorun/*.lua")
    entry_sv: list[str] = _patterns("autorun/server/*.lua")

    unique_id: str | None = Field(
        default=None, description="Fixed version id instead of the content hash"
    )
    wrap: WrapMode = Field(default=WrapMode.COMMENT, description="Chunk wrap strategy")
    compression: CompressionMode = Field(
        default=CompressionMode.NONE, description="Compression for client/shared buffers"
    )
    sort_files: bool = Field(
        default=False, description="Sort each realm's files into load order before packing"
    )

    @field_validator(
        "include_sh", "include_cl", "include_sv", "exclude", "entry_cl", "entry_sh", "entry_sv"
    )
    @classmethod
    def validate_patterns(cls, v: list[str]) -> list[str]:
        # Raises ValueError on malformed patterns
        return [GlobPattern(p).pattern for p in v]

    @field_validator("unique_id")
    @classmethod
    def validate_unique_id(cls, v: str | None) -> str | None:
        if v is not None and (not _UNIQUE_ID_RE.match(v) or v in (".", "..")):
            raise ValueError(f"unique_id must be a non-empty path-safe string, got {v!r}")
        return v

    @model_validator(mode="after")
    def _validate_compression_wrap(self) -> Self:
        # Compressed bytes contain NUL and bare CR, which only the literal wrap can carry
        if self.compression is not CompressionMode.NONE and self.wrap is not WrapMode.LITERAL:
            raise ValueError('compression requires "wrap": "literal"')
        return self

    def compiled(self, field_name: str) -> tuple[GlobPattern, ...]:
        """Return a pattern list field as compiled GlobPatterns."""
        return tuple(GlobPattern(p) for p in getattr(self, field_name))

    @property
    def has_entries(self) -> bool:
        return bool(self.entry_cl or self.entry_sh or self.entry_sv)
