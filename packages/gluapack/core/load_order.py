"""Lua load order, replicated from the game's loading sequence.

See https://wiki.facepunch.com/gmod/Lua_Loading_Order

Paths are bucketed by the first matching pattern; ties within a bucket are
broken by byte-wise path comparison. Used to order each realm's entry array
in the bootstrap loader (and the whole file set when ``sort_files`` is on).
"""

from __future__ import annotations

from collections.abc import Iterable

from gluapack.core.globbing import GlobPattern

_ORDERINGS: tuple[GlobPattern, ...] = tuple(
    GlobPattern(p)
    for p in (
        "includes/init.lua",
        "derma/init.lua",
        "base/gamemode/cl_init.lua",
        "autorun/*.lua",
        "autorun/server/*.lua",
        "autorun/client/*.lua",
        "postprocess/*.lua",
        "vgui/*.lua",
        "matproxy/*.lua",
        "skins/*.lua",
        "*/gamemode/cl_init.lua",
        "weapons/*.lua",
        "weapons/**/cl_init.lua",
        "weapons/**/init.lua",
        "weapons/**/shared.lua",
        "entities/*.lua",
        "entities/**/cl_init.lua",
        "entities/**/init.lua",
        "entities/**/shared.lua",
        "effects/*.lua",
    )
)

# Bucket for paths no pattern matches.
UNMATCHED_BUCKET = len(_ORDERINGS)


def bucket(path: str) -> int:
    """Return the load-order bucket of a script path."""
    for i, pattern in enumerate(_ORDERINGS):
        if pattern.matches(path):
            return i
    return UNMATCHED_BUCKET


def priority(path: str) -> tuple[int, str]:
    """Sort key for a script path.

    Code point order of a str equals the byte order of its UTF-8 encoding,
    so the path itself breaks ties byte-wise.
    """
    return bucket(path), path


def sort_paths(paths: Iterable[str]) -> list[str]:
    """Return paths sorted into load order."""
    return sorted(paths, key=priority)
