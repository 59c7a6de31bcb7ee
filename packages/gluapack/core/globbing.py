"""Glob patterns over forward-slash script paths.

Patterns are matched segment by segment so that ``*``, ``?`` and ``[...]``
never cross a ``/``. A segment consisting solely of ``**`` matches zero or
more whole segments. Leading dots are not special.

Example:
    >>> GlobPattern("**/sh_*.lua").matches("sh_init.lua")
    True
    >>> GlobPattern("autorun/*.lua").matches("autorun/server/init.lua")
    False
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from fnmatch import fnmatchcase
from functools import lru_cache
from pathlib import Path


def normalize_path(path: str) -> str:
    """Normalize separators of a relative script path to forward slashes."""
    return path.replace("\\", "/")


def _validate_segment(segment: str, pattern: str) -> None:
    depth = 0
    for ch in segment:
        if ch == "[":
            depth += 1
        elif ch == "]" and depth:
            depth -= 1
    if depth:
        raise ValueError(f"Unbalanced '[' in glob pattern: {pattern!r}")
    if "**" in segment and segment != "**":
        raise ValueError(f"'**' must be a whole path segment in glob pattern: {pattern!r}")


class GlobPattern:
    """A compiled glob pattern for relative script paths."""

    __slots__ = ("pattern", "_segments")

    def __init__(self, pattern: str) -> None:
        if not isinstance(pattern, str) or not pattern:
            raise ValueError("Glob pattern must be a non-empty string")
        normalized = normalize_path(pattern)
        if normalized.startswith("/") or (len(normalized) > 1 and normalized[1] == ":"):
            raise ValueError(f"Glob pattern must be relative: {pattern!r}")

        segments = tuple(s for s in normalized.split("/") if s not in ("", "."))
        if not segments:
            raise ValueError(f"Glob pattern matches nothing: {pattern!r}")
        for segment in segments:
            _validate_segment(segment, pattern)

        self.pattern = normalized
        self._segments = segments

    def __repr__(self) -> str:
        return f"GlobPattern({self.pattern!r})"

    def __str__(self) -> str:
        return self.pattern

    def __eq__(self, other: object) -> bool:
        return isinstance(other, GlobPattern) and other.pattern == self.pattern

    def __hash__(self) -> int:
        return hash(self.pattern)

    def matches(self, path: str) -> bool:
        """Check whether a relative script path matches this pattern."""
        parts = tuple(normalize_path(path).split("/"))
        return _match_segments(self._segments, parts)

    def expand(self, root: Path) -> list[str]:
        """Find files under root matching this pattern.

        Args:
            root: Directory the pattern is relative to

        Returns:
            Sorted relative forward-slash paths of matching regular files

        Raises:
            OSError: If a directory cannot be listed
        """
        return sorted(p for p in walk_files(root) if self.matches(p))


@lru_cache(maxsize=4096)
def _match_segments(pattern: tuple[str, ...], parts: tuple[str, ...]) -> bool:
    if not pattern:
        return not parts

    head, rest = pattern[0], pattern[1:]
    if head == "**":
        # Zero or more whole segments.
        return any(_match_segments(rest, parts[i:]) for i in range(len(parts) + 1))

    if not parts:
        return False
    return fnmatchcase(parts[0], head) and _match_segments(rest, parts[1:])


def walk_files(root: Path) -> list[str]:
    """List every regular file under root as a relative forward-slash path.

    Symlinked directories are followed, each real directory is visited once.

    Raises:
        OSError: If a directory cannot be listed
    """

    def _raise(error: OSError) -> None:
        raise error

    found: list[str] = []
    seen: set[str] = set()
    root = Path(root)
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise, followlinks=True):
        real = os.path.realpath(dirpath)
        if real in seen:
            dirnames[:] = []
            continue
        seen.add(real)

        rel_dir = Path(dirpath).relative_to(root).as_posix()
        for name in filenames:
            if not os.path.isfile(os.path.join(dirpath, name)):
                continue
            found.append(name if rel_dir == "." else f"{rel_dir}/{name}")
    return found


def matches_any(patterns: Iterable[GlobPattern], path: str) -> bool:
    """Check whether path matches at least one pattern."""
    return any(p.matches(path) for p in patterns)
