"""Unpack pipeline: rebuild individual script files from packed artifacts."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from gluapack.core.config.models import CompressionMode, WrapMode
from gluapack.core.consts import (
    ARTIFACT_DIR_NAME,
    AUTORUN_DIR_NAME,
    CHUNK_FILE_GLOB,
    LOADER_GLOB,
    SCRIPT_ROOT_NAME,
    SERVER_FILE_NAME,
)
from gluapack.core.context import OutputMode, RunContext
from gluapack.core.errors import FormatError, UnpackingError, io_errors
from gluapack.core.globbing import GlobPattern
from gluapack.core.io import AbsolutePath, FileSystem
from gluapack.core.models import Realm, ScriptFile, UnpackStatistics
from gluapack.core.packing import mirror
from gluapack.core.packing.chunker import unwrap_chunks
from gluapack.core.packing.collector import gather_fail_fast
from gluapack.core.packing.compression import decompress
from gluapack.core.packing.framing import codec_for
from gluapack.core.packing.loader import LoaderHeader
from gluapack.core.packing.wrapping import wrapper_for
from gluapack.core.utils.logging import get_logger, log_performance

logger = logging.getLogger(__name__)

_CHUNK_NAME_RE = re.compile(r"^gluapack\.(\d+)\.(sh|cl)\.lua$")
_LOADER_PATTERN = GlobPattern(LOADER_GLOB)
_CHUNK_PATTERN = GlobPattern(CHUNK_FILE_GLOB)


@dataclass
class PackedArtifacts:
    """The artifacts of one packed version, as found on disk.

    Attributes:
        version_dir: ``gluapack/<version-id>`` directory
        loader: Loader file, if one was found
        header: Parsed loader header (defaults when absent)
        server: Server buffer file, if present
        chunks: Chunk files per cacheable realm, in index order
    """

    version_dir: Path
    loader: Path | None
    header: LoaderHeader
    server: Path | None = None
    chunks: dict[Realm, list[Path]] = field(
        default_factory=lambda: {Realm.SHARED: [], Realm.CLIENT: []}
    )

    @property
    def files(self) -> list[Path]:
        """Artifact files whose contents are unpacked."""
        found = [self.server] if self.server is not None else []
        return found + self.chunks[Realm.SHARED] + self.chunks[Realm.CLIENT]


async def _find_loaders(fs: FileSystem, script_root: Path) -> list[Path]:
    autorun = script_root / AUTORUN_DIR_NAME
    if not await fs.is_dir(AbsolutePath(autorun)):
        return []
    return [
        autorun / name
        for name in sorted(await fs.listdir(AbsolutePath(autorun)))
        if _LOADER_PATTERN.matches(f"{AUTORUN_DIR_NAME}/{name}")
    ]


async def _find_version_dirs(fs: FileSystem, script_root: Path) -> list[Path]:
    artifact_root = script_root / ARTIFACT_DIR_NAME
    if not await fs.is_dir(AbsolutePath(artifact_root)):
        return []
    found = []
    for name in sorted(await fs.listdir(AbsolutePath(artifact_root))):
        # Leftovers of interrupted runs
        if name.startswith("."):
            continue
        if await fs.is_dir(AbsolutePath(artifact_root / name)):
            found.append(artifact_root / name)
    return found


async def discover_artifacts(fs: FileSystem, script_root: Path) -> PackedArtifacts:
    """Locate the loader and chunk artifacts under a script root.

    The loader header names the version directory and records the wrap and
    compression used. Without a readable header, a single version directory
    is unpacked with the default wrap and no compression.

    Raises:
        UnpackingError: If no artifacts exist or the version is ambiguous
        FormatError: If client/shared chunk indices have gaps
    """
    loaders = await _find_loaders(fs, script_root)
    version_dirs = await _find_version_dirs(fs, script_root)

    candidates: list[tuple[Path, LoaderHeader]] = []
    for loader in loaders:
        text = (await fs.read_bytes(AbsolutePath(loader))).decode("utf-8", errors="replace")
        header = LoaderHeader.parse(text)
        if header is None:
            logger.warning("Ignoring loader without a gluapack header: %s", loader)
            continue
        version_dir = script_root / ARTIFACT_DIR_NAME / header.version_id
        if version_dir in version_dirs:
            candidates.append((loader, header))

    if len(candidates) > 1:
        raise UnpackingError(
            "Multiple gluapack versions found: "
            + ", ".join(header.version_id for _, header in candidates)
        )

    if candidates:
        loader, header = candidates[0]
        artifacts = PackedArtifacts(
            version_dir=script_root / ARTIFACT_DIR_NAME / header.version_id,
            loader=loader,
            header=header,
        )
    elif len(version_dirs) == 1:
        version_dir = version_dirs[0]
        artifacts = PackedArtifacts(
            version_dir=version_dir,
            loader=loaders[0] if len(loaders) == 1 else None,
            header=LoaderHeader(
                version_id=version_dir.name,
                wrap=WrapMode.COMMENT,
                compression=CompressionMode.NONE,
            ),
        )
    elif version_dirs:
        raise UnpackingError(
            "Multiple gluapack versions found: " + ", ".join(d.name for d in version_dirs)
        )
    else:
        raise UnpackingError("no gluapack artifacts found")

    indexed: dict[Realm, list[tuple[int, Path]]] = {Realm.SHARED: [], Realm.CLIENT: []}
    for name in sorted(await fs.listdir(AbsolutePath(artifacts.version_dir))):
        path = artifacts.version_dir / name
        if name == SERVER_FILE_NAME:
            artifacts.server = path
            continue
        match = _CHUNK_NAME_RE.match(name)
        if match:
            indexed[Realm(match.group(2))].append((int(match.group(1)), path))

    for realm, entries in indexed.items():
        entries.sort()
        indices = [index for index, _ in entries]
        if indices != list(range(1, len(indices) + 1)):
            raise FormatError(f"Missing {realm.value} chunk(s): found indices {indices}")
        artifacts.chunks[realm] = [path for _, path in entries]

    if not artifacts.files:
        raise UnpackingError("no gluapack artifacts found")
    return artifacts


def _check_path(file: ScriptFile) -> ScriptFile:
    parts = PurePosixPath(file.path).parts
    if not parts or parts[0] == "/" or ".." in parts:
        raise FormatError(f"Refusing to unpack unsafe path: {file.path!r}")
    return file


def decode_realm(realm: Realm, chunks: list[bytes], header: LoaderHeader) -> list[ScriptFile]:
    """Reverse packing of one realm from its artifact contents (in index order)."""
    codec = codec_for(realm)
    if not realm.is_cacheable:
        buffer = b"".join(chunks)
    else:
        buffer = unwrap_chunks(chunks, wrapper_for(header.wrap))
        buffer = decompress(buffer, header.compression)
    return [_check_path(f) for f in codec.decode(buffer)]


async def _read(fs: FileSystem, path: Path) -> bytes:
    with io_errors(str(path)):
        return await fs.read_bytes(AbsolutePath(path))


async def _write(fs: FileSystem, root: Path, file: ScriptFile) -> None:
    path = root / file.path
    with io_errors(str(path)):
        await fs.write_bytes(AbsolutePath(path), file.contents)


def _is_artifact(rel: str) -> bool:
    prefix = f"{SCRIPT_ROOT_NAME}/"
    if not rel.startswith(prefix):
        return False
    rel = rel[len(prefix) :]
    return _CHUNK_PATTERN.matches(rel) or _LOADER_PATTERN.matches(rel)


@log_performance
async def unpack(
    addon_dir: Path | str,
    out_dir: Path | str | None = None,
    no_copy: bool = False,
    fs: FileSystem | None = None,
) -> UnpackStatistics:
    """Unpack a packed addon.

    Args:
        addon_dir: Packed addon root (the directory containing ``lua/``)
        out_dir: Output addon root; None unpacks in place
        no_copy: With out_dir, write only the unpacked files
        fs: Filesystem for artifact I/O (real filesystem by default)

    Returns:
        Statistics of the run

    Raises:
        UnpackingError: If no artifacts are found or versions are ambiguous
        FormatError: If an artifact is malformed
        Utf8Error: If a path or length token is not valid UTF-8
        IoError: On any filesystem failure
    """
    started = time.perf_counter()
    context = RunContext(
        addon_dir=Path(addon_dir),
        out_dir=Path(out_dir) if out_dir is not None else None,
        no_copy=no_copy,
    )
    if fs is not None:
        context.fs = fs
    log = get_logger(__name__, addon=str(context.addon_dir), mode=context.mode.value)

    log.info("Discovering chunk files...")
    with io_errors():
        artifacts = await discover_artifacts(context.fs, context.script_root)
    log.debug("Unpacking version %s", artifacts.header.version_id)

    sources = {
        Realm.SERVER: [artifacts.server] if artifacts.server is not None else [],
        Realm.SHARED: artifacts.chunks[Realm.SHARED],
        Realm.CLIENT: artifacts.chunks[Realm.CLIENT],
    }
    contents = await gather_fail_fast(
        [gather_fail_fast([_read(context.fs, p) for p in paths]) for paths in sources.values()]
    )
    raw = dict(zip(sources, contents, strict=True))

    log.info("Unpacking files...")
    decoded = await asyncio.gather(
        *(asyncio.to_thread(decode_realm, realm, raw[realm], artifacts.header) for realm in raw)
    )
    files = [f for realm_files in decoded for f in realm_files]

    if context.out_dir is not None:
        try:
            with io_errors(str(context.out_dir)):
                await asyncio.to_thread(
                    mirror.prepare_output_dir, context.out_dir, context.addon_dir
                )
        except ValueError as e:
            raise UnpackingError(str(e)) from e

    if context.mode is OutputMode.COPY:
        log.info("Copying addon to output directory...")
        with io_errors(str(context.out_dir)):
            await asyncio.to_thread(
                mirror.copy_addon, context.addon_dir, context.output_root, _is_artifact
            )

    log.info("Writing unpacked files...")
    await gather_fail_fast([_write(context.fs, context.output_script_root, f) for f in files])

    if context.mode is OutputMode.IN_PLACE:
        log.info("Deleting gluapack files...")
        with io_errors():
            await context.fs.rmdir(AbsolutePath(artifacts.version_dir), recursive=True)
            if artifacts.loader is not None:
                await context.fs.remove(AbsolutePath(artifacts.loader))
            artifact_root = AbsolutePath(context.script_root / ARTIFACT_DIR_NAME)
            if not await context.fs.listdir(artifact_root):
                await context.fs.rmdir(artifact_root)

    packed_sizes = [len(d) for chunks in raw.values() for d in chunks]
    return UnpackStatistics(
        total_unpacked_files=len(files),
        total_packed_files=len(packed_sizes),
        total_unpacked_size=sum(len(f.contents) for f in files),
        total_packed_size=sum(packed_sizes),
        elapsed_s=time.perf_counter() - started,
    )
