"""Unpacking pipeline: restore individual Lua files from packed artifacts."""

from gluapack.core.unpacking.unpacker import (
    PackedArtifacts,
    decode_realm,
    discover_artifacts,
    unpack,
)

__all__ = [
    "PackedArtifacts",
    "decode_realm",
    "discover_artifacts",
    "unpack",
]
