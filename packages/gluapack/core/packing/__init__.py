"""Packing pipeline: turn an addon's Lua files into a handful of artifacts."""

from gluapack.core.packing.packer import PackContext, pack

__all__ = [
    "PackContext",
    "pack",
]
