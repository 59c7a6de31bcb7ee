"""Collect each realm's script files from an addon's script root."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Sequence
from pathlib import Path
from typing import TypeVar

from gluapack.core.config.models import PackConfig
from gluapack.core.consts import CHUNK_FILE_GLOB, LOADER_GLOB
from gluapack.core.errors import IoError
from gluapack.core.globbing import GlobPattern, matches_any, walk_files
from gluapack.core.io import AbsolutePath, FileSystem
from gluapack.core.load_order import priority
from gluapack.core.models import Realm, RealmFileSet, ScriptFile

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Artifacts of earlier runs are never packed again
ARTIFACT_EXCLUDES = (GlobPattern(CHUNK_FILE_GLOB), GlobPattern(LOADER_GLOB))


async def gather_fail_fast(aws: Sequence[Awaitable[T]]) -> list[T]:
    """Run awaitables concurrently; on the first failure cancel the rest and raise it.

    Results are returned in input order. Cancelled tasks are awaited before
    the error propagates, so nothing keeps running in the background.
    """
    if not aws:
        return []

    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    if pending:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    # Input order decides which failure is reported
    for task in tasks:
        if task in done and not task.cancelled() and task.exception() is not None:
            raise task.exception()  # type: ignore[misc]
    return [task.result() for task in tasks]


async def _read(fs: FileSystem, script_root: Path, path: str) -> bytes:
    try:
        return await fs.read_bytes(AbsolutePath(script_root / path))
    except OSError as e:
        raise IoError(e, path) from e


def select_paths(
    candidates: Sequence[str],
    include: Sequence[GlobPattern],
    entry: Sequence[GlobPattern],
    exclude: Sequence[GlobPattern],
) -> list[str]:
    """Pick the paths of one realm from the addon's files.

    Include patterns are applied before entry patterns, each in order; within
    a pattern paths come in sorted order. Excluded paths are dropped and the
    first match of a path wins.
    """
    selected: list[str] = []
    seen: set[str] = set()
    for pattern in (*include, *entry):
        for path in candidates:
            if path in seen or not pattern.matches(path) or matches_any(exclude, path):
                continue
            seen.add(path)
            selected.append(path)
    return selected


async def list_candidates(script_root: Path) -> list[str]:
    """List every file under the script root, sorted.

    Raises:
        IoError: If the tree cannot be walked
    """
    try:
        return sorted(await asyncio.to_thread(walk_files, script_root))
    except OSError as e:
        raise IoError(e) from e


async def collect_realm(
    fs: FileSystem,
    script_root: Path,
    realm: Realm,
    include: Sequence[GlobPattern],
    entry: Sequence[GlobPattern],
    exclude: Sequence[GlobPattern],
    candidates: Sequence[str] | None = None,
) -> RealmFileSet:
    """Collect one realm's files, reading their contents concurrently.

    Args:
        fs: Filesystem to read from
        script_root: Addon ``lua/`` directory
        realm: Realm being collected
        include: Include patterns of the realm
        entry: Entry patterns of the realm (their matches are collected too)
        exclude: Patterns dropped from every realm
        candidates: Pre-listed files under script_root (listed when None)

    Returns:
        The realm's files in collection order plus its entry paths

    Raises:
        IoError: On the first read failure; in-flight reads are cancelled
    """
    if candidates is None:
        candidates = await list_candidates(script_root)

    paths = select_paths(candidates, include, entry, exclude)
    contents = await gather_fail_fast([_read(fs, script_root, p) for p in paths])

    files = [ScriptFile(path=p, contents=c) for p, c in zip(paths, contents, strict=True)]
    entry_paths = [p for p in paths if matches_any(entry, p)]

    logger.debug("Collected %d %s files (%d entries)", len(files), realm.value, len(entry_paths))
    return RealmFileSet(realm=realm, files=files, entry_paths=entry_paths)


async def collect_all(
    fs: FileSystem, script_root: Path, config: PackConfig
) -> dict[Realm, RealmFileSet]:
    """Collect the three realms concurrently, failing fast."""
    candidates = await list_candidates(script_root)
    exclude = (*config.compiled("exclude"), *ARTIFACT_EXCLUDES)

    realms = (Realm.SERVER, Realm.CLIENT, Realm.SHARED)
    results = await gather_fail_fast(
        [
            collect_realm(
                fs,
                script_root,
                realm,
                config.compiled(f"include_{realm.value}"),
                config.compiled(f"entry_{realm.value}"),
                exclude,
                candidates,
            )
            for realm in realms
        ]
    )

    file_sets = dict(zip(realms, results, strict=True))
    if config.sort_files:
        for file_set in file_sets.values():
            file_set.files.sort(key=lambda f: priority(f.path))
    return file_sets
