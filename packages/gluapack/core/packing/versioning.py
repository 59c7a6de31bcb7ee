"""Version ids and the atomic swap of versioned artifact directories.

A run writes its artifacts into ``gluapack/.<id>.partial/`` and renames the
directory to ``gluapack/<id>`` once complete. The loader is then replaced
atomically, and only after that are older versions deleted. An interrupted
run therefore always leaves the previous version intact.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from gluapack.core.consts import (
    ARTIFACT_DIR_NAME,
    AUTORUN_DIR_NAME,
    LOADER_GLOB,
    PARTIAL_DIR_SUFFIX,
    VERSION_DIR_GLOB,
    VERSION_ID_LENGTH,
    loader_file_name,
)
from gluapack.core.globbing import GlobPattern
from gluapack.core.io import AbsolutePath, FileSystem, WriteResult

logger = logging.getLogger(__name__)

_VERSION_DIR_PATTERN = GlobPattern(VERSION_DIR_GLOB)
_LOADER_PATTERN = GlobPattern(LOADER_GLOB)


def compute_version_id(sv: bytes, sh: bytes, cl: bytes, override: str | None = None) -> str:
    """Derive the version id of a run from its encoded realm buffers.

    Args:
        sv: Server buffer
        sh: Shared buffer (before compression)
        cl: Client buffer (before compression)
        override: Configured unique_id, used verbatim when set

    Returns:
        The override, or the first 16 hex chars of sha256(sv + sh + cl)
    """
    if override is not None:
        return override
    digest = hashlib.sha256()
    digest.update(sv)
    digest.update(sh)
    digest.update(cl)
    return digest.hexdigest()[:VERSION_ID_LENGTH]


class VersionedOutput:
    """Paths and swap logic for one version's artifacts under a script root.

    Args:
        fs: Filesystem to operate on
        script_root: The ``lua/`` directory artifacts are rooted at
        version_id: Id of the version being written
    """

    def __init__(self, fs: FileSystem, script_root: Path, version_id: str) -> None:
        self.fs = fs
        self.script_root = Path(script_root)
        self.version_id = version_id

    @property
    def artifact_root(self) -> Path:
        return self.script_root / ARTIFACT_DIR_NAME

    @property
    def final_dir(self) -> Path:
        return self.artifact_root / self.version_id

    @property
    def partial_dir(self) -> Path:
        return self.artifact_root / f".{self.version_id}{PARTIAL_DIR_SUFFIX}"

    @property
    def loader_path(self) -> Path:
        return self.script_root / AUTORUN_DIR_NAME / loader_file_name(self.version_id)

    @property
    def loader_relpath(self) -> str:
        return self.loader_path.relative_to(self.script_root).as_posix()

    async def begin(self) -> Path:
        """Create an empty partial directory and return it."""
        partial = AbsolutePath(self.partial_dir)
        if await self.fs.exists(partial):
            await self.fs.rmdir(partial, recursive=True)
        await self.fs.mkdirs(partial)
        return self.partial_dir

    async def abort(self) -> None:
        """Remove the partial directory, if any."""
        partial = AbsolutePath(self.partial_dir)
        if await self.fs.exists(partial):
            logger.debug("Removing partial output %s", self.partial_dir)
            await self.fs.rmdir(partial, recursive=True)

    async def commit(self, loader: str) -> WriteResult:
        """Swap the partial directory into place and install the loader.

        An existing directory with the same id (re-packing identical
        content) is replaced.
        """
        final = AbsolutePath(self.final_dir)
        if await self.fs.exists(final):
            await self.fs.rmdir(final, recursive=True)
        await self.fs.rename(AbsolutePath(self.partial_dir), final)
        return await self.fs.write_text(AbsolutePath(self.loader_path), loader)

    async def stale_artifacts(self) -> tuple[list[Path], list[Path]]:
        """Find version directories and loaders that belong to other versions.

        Returns:
            (stale version directories, stale loader files)
        """
        dirs: list[Path] = []
        loaders: list[Path] = []

        artifact_root = AbsolutePath(self.artifact_root)
        if await self.fs.is_dir(artifact_root):
            for name in sorted(await self.fs.listdir(artifact_root)):
                rel = f"{ARTIFACT_DIR_NAME}/{name}"
                path = self.artifact_root / name
                if name == self.version_id or not _VERSION_DIR_PATTERN.matches(rel):
                    continue
                if await self.fs.is_dir(AbsolutePath(path)):
                    dirs.append(path)

        autorun = AbsolutePath(self.script_root / AUTORUN_DIR_NAME)
        if await self.fs.is_dir(autorun):
            for name in sorted(await self.fs.listdir(autorun)):
                rel = f"{AUTORUN_DIR_NAME}/{name}"
                if rel != self.loader_relpath and _LOADER_PATTERN.matches(rel):
                    loaders.append(self.script_root / rel)

        return dirs, loaders

    async def remove_stale(self) -> int:
        """Delete artifacts of other versions. Returns how many were removed."""
        dirs, loaders = await self.stale_artifacts()
        for loader in loaders:
            logger.debug("Deleting stale loader %s", loader)
            await self.fs.remove(AbsolutePath(loader))
        for directory in dirs:
            logger.debug("Deleting stale version directory %s", directory)
            await self.fs.rmdir(AbsolutePath(directory), recursive=True)
        return len(dirs) + len(loaders)
