"""Cross-realm validation of collected files."""

from __future__ import annotations

from gluapack.core.errors import NoLuaFiles, RealmConflict
from gluapack.core.models import RealmFileSet


def validate_realms(sv: RealmFileSet, cl: RealmFileSet, sh: RealmFileSet) -> int:
    """Check that no path belongs to two realms and that anything was found.

    Paths are checked in Server, Shared, Client order, so the conflict
    reported is the first duplicate in that order.

    Returns:
        Total number of files across the realms

    Raises:
        RealmConflict: If a path was collected by more than one realm
        NoLuaFiles: If no realm has any file
    """
    seen: set[str] = set()
    for file_set in (sv, sh, cl):
        for file in file_set.files:
            if file.path in seen:
                raise RealmConflict(file.path)
            seen.add(file.path)

    if not seen:
        raise NoLuaFiles()
    return len(seen)
