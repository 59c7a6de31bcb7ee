"""Copy an addon into an output directory and tidy it afterwards.

Blocking helpers; the pipelines run them with ``asyncio.to_thread``.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable, Iterable
from pathlib import Path

from gluapack.core.consts import CONFIG_FILE_FALLBACKS, CONFIG_FILE_NAME

logger = logging.getLogger(__name__)

_SKIPPED_NAMES = frozenset({CONFIG_FILE_NAME, *CONFIG_FILE_FALLBACKS})


def prepare_output_dir(out_dir: Path, addon_dir: Path) -> None:
    """Recreate out_dir from scratch.

    Raises:
        ValueError: If out_dir is the addon itself or contains it
        OSError: If the directory cannot be cleared or created
    """
    out_resolved = Path(out_dir).resolve()
    addon_resolved = Path(addon_dir).resolve()
    if out_resolved == addon_resolved or addon_resolved.is_relative_to(out_resolved):
        raise ValueError("Output directory cannot be the same as the addon directory!")

    if out_dir.is_dir() and not out_dir.is_symlink():
        logger.info("Deleting old output directory...")
        shutil.rmtree(out_dir)
    elif out_dir.exists() or out_dir.is_symlink():
        logger.info("Deleting old output directory...")
        out_dir.unlink()
    out_dir.mkdir(parents=True)


def copy_addon(
    src: Path,
    dst: Path,
    skip: Callable[[str], bool] | None = None,
) -> int:
    """Copy an addon tree, skipping hidden entries and gluapack config files.

    Each symlink is followed once; a link seen again (a cycle) is skipped.

    Args:
        src: Addon root to copy from
        dst: Existing destination directory
        skip: Called with the forward-slash path relative to src; entries it
            returns True for are not copied (directories are still descended)

    Returns:
        Number of files copied
    """
    visited_links: set[str] = set()
    copied = 0

    def _copy(from_dir: Path, to_dir: Path, rel: str) -> None:
        nonlocal copied
        with os.scandir(from_dir) as entries:
            for entry in sorted(entries, key=lambda e: e.name):
                if entry.name.startswith(".") or entry.name in _SKIPPED_NAMES:
                    continue
                if entry.is_symlink():
                    real = os.path.realpath(entry.path)
                    if real in visited_links:
                        continue
                    visited_links.add(real)

                entry_rel = f"{rel}{entry.name}"
                target = to_dir / entry.name
                if entry.is_dir():
                    _copy(Path(entry.path), target, f"{entry_rel}/")
                elif entry.is_file():
                    if skip is not None and skip(entry_rel):
                        continue
                    target.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copyfile(entry.path, target)
                    copied += 1

    _copy(Path(src), Path(dst), "")
    return copied


def delete_files(root: Path, paths: Iterable[str]) -> int:
    """Delete files under root, then prune directories left empty.

    Pruning stops at root. Paths that do not exist are skipped, since
    copy_addon never mirrors hidden entries.

    Returns:
        Number of files deleted
    """
    root = Path(root)
    parents: set[Path] = set()
    deleted = 0
    for rel in paths:
        path = root / rel
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("Not mirrored, nothing to delete: %s", rel)
            continue
        deleted += 1
        for parent in path.parents:
            if parent == root or root not in parent.parents:
                break
            parents.add(parent)

    # Deepest first so nested empty directories collapse
    for directory in sorted(parents, key=lambda p: len(p.parts), reverse=True):
        if directory.is_dir() and not any(directory.iterdir()):
            directory.rmdir()
    return deleted
