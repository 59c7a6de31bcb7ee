"""Pack pipeline: collect, validate, encode, split and install artifacts.

Example:
    >>> stats = await pack(Path("my_addon"), out_dir=Path("my_addon-packed"))
    >>> print(stats.files())
    412 files -> 9 file(s) (-97.82%)
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from gluapack.core.config import PackConfig, load_pack_config
from gluapack.core.consts import MANIFEST_FILE_NAME, SERVER_FILE_NAME
from gluapack.core.context import OutputMode, RunContext
from gluapack.core.errors import PackingError, io_errors
from gluapack.core.io import AbsolutePath, FileSystem
from gluapack.core.models import Chunk, PackStatistics, Realm, RealmFileSet
from gluapack.core.packing import mirror
from gluapack.core.packing.chunker import split_chunks
from gluapack.core.packing.collector import collect_all, gather_fail_fast
from gluapack.core.packing.compression import compress
from gluapack.core.packing.framing import codec_for
from gluapack.core.packing.loader import LoaderHeader, LoaderSpec, render_loader
from gluapack.core.packing.manifest import render_manifest
from gluapack.core.packing.validator import validate_realms
from gluapack.core.packing.versioning import VersionedOutput, compute_version_id
from gluapack.core.packing.wrapping import wrapper_for
from gluapack.core.utils.logging import get_logger, log_performance

logger = logging.getLogger(__name__)


@dataclass
class PackContext(RunContext):
    """Run context of a pack.

    Attributes:
        config: Effective packing configuration
        version_id: Set once the realm buffers are encoded
    """

    config: PackConfig = field(default_factory=PackConfig)
    version_id: str | None = None


async def _encode(file_sets: dict[Realm, RealmFileSet]) -> dict[Realm, bytes]:
    realms = list(file_sets)
    buffers = await asyncio.gather(
        *(asyncio.to_thread(codec_for(r).encode, file_sets[r].files) for r in realms)
    )
    return dict(zip(realms, buffers, strict=True))


async def _chunk_realm(context: PackContext, realm: Realm, buffer: bytes) -> list[Chunk]:
    """Compress (when configured) and split one cacheable realm buffer."""
    if not buffer:
        return []
    buffer = await asyncio.to_thread(compress, buffer, context.config.compression)
    wrapper = wrapper_for(context.config.wrap)
    return await asyncio.to_thread(split_chunks, buffer, realm, wrapper)


async def _write(fs: FileSystem, path: Path, data: bytes) -> int:
    with io_errors(str(path)):
        result = await fs.write_bytes(AbsolutePath(path), data)
    return result.bytes_written


async def _write_artifacts(
    context: PackContext,
    output: VersionedOutput,
    file_sets: dict[Realm, RealmFileSet],
    buffers: dict[Realm, bytes],
) -> tuple[int, int]:
    """Write every artifact of the version and swap it into place.

    Returns:
        (artifact count, artifact bytes)
    """
    fs = context.fs
    config = context.config
    with io_errors(str(output.partial_dir)):
        partial = await output.begin()

    count = 0
    size = 0

    has_server = bool(buffers[Realm.SERVER])
    if has_server:
        logger.info("Writing packed serverside files...")
        size += await _write(fs, partial / SERVER_FILE_NAME, buffers[Realm.SERVER])
        count += 1

    logger.info("Chunking...")
    cacheable = (Realm.SHARED, Realm.CLIENT)
    chunk_lists = await asyncio.gather(
        *(_chunk_realm(context, realm, buffers[realm]) for realm in cacheable)
    )
    chunks = dict(zip(cacheable, chunk_lists, strict=True))
    all_chunks = [c for realm in cacheable for c in chunks[realm]]

    written = await gather_fail_fast(
        [_write(fs, partial / c.file_name, c.wrapped_bytes) for c in all_chunks]
    )
    size += sum(written)
    count += len(all_chunks)

    manifest = render_manifest(
        {realm: [c.content_hash for c in chunks[realm] if c.content_hash] for realm in cacheable}
    )
    if manifest is not None:
        logger.info("Generating clientside Lua cache manifest...")
        size += await _write(fs, partial / MANIFEST_FILE_NAME, manifest.encode("utf-8"))
        count += 1

    logger.info("Injecting loader...")
    loader = render_loader(
        LoaderSpec(
            header=LoaderHeader(
                version_id=output.version_id,
                wrap=config.wrap,
                compression=config.compression,
            ),
            entries={realm: s.entry_paths for realm, s in file_sets.items()},
            chunk_counts={realm: len(chunks[realm]) for realm in cacheable},
            has_server=has_server,
            has_manifest=manifest is not None,
            packed_paths=[f.path for s in file_sets.values() for f in s.files],
        )
    )

    with io_errors(str(output.final_dir)):
        result = await output.commit(loader)
    size += result.bytes_written
    count += 1

    return count, size


@log_performance
async def pack(
    addon_dir: Path | str,
    out_dir: Path | str | None = None,
    no_copy: bool = False,
    config: PackConfig | None = None,
    fs: FileSystem | None = None,
) -> PackStatistics:
    """Pack an addon.

    Args:
        addon_dir: Addon root (the directory containing ``lua/``)
        out_dir: Output addon root; None packs in place
        no_copy: With out_dir, write only the artifacts instead of a full copy
        config: Configuration to use instead of the addon's gluapack.json
        fs: Filesystem for artifact I/O (real filesystem by default)

    Returns:
        Statistics of the run

    Raises:
        ConfigParseError: If the addon's config file is invalid
        RealmConflict: If a path is collected by more than one realm
        NoLuaFiles: If nothing matched the configuration
        CompressionError: If compression fails
        IoError: On any filesystem failure
    """
    started = time.perf_counter()
    addon_dir = Path(addon_dir)

    if config is None:
        config = load_pack_config(addon_dir)

    context = PackContext(
        addon_dir=addon_dir,
        out_dir=Path(out_dir) if out_dir is not None else None,
        no_copy=no_copy,
        config=config,
    )
    if fs is not None:
        context.fs = fs
    log = get_logger(__name__, addon=str(addon_dir), mode=context.mode.value)

    if not config.has_entries:
        log.warning(
            "You have not specified any entry file patterns in your config. "
            "gluapack will do nothing after unpacking your addon."
        )

    log.info("Collecting Lua files...")
    file_sets = await collect_all(context.fs, context.script_root, config)

    log.info("Checking realms...")
    total_files = validate_realms(
        file_sets[Realm.SERVER], file_sets[Realm.CLIENT], file_sets[Realm.SHARED]
    )

    if context.out_dir is not None:
        try:
            with io_errors(str(context.out_dir)):
                await asyncio.to_thread(mirror.prepare_output_dir, context.out_dir, addon_dir)
        except ValueError as e:
            raise PackingError(str(e)) from e

    if context.mode is OutputMode.COPY:
        log.info("Copying addon to output directory...")
        with io_errors(str(context.out_dir)):
            await asyncio.to_thread(mirror.copy_addon, addon_dir, context.output_root)

    log.info("Packing...")
    buffers = await _encode(file_sets)

    context.version_id = compute_version_id(
        buffers[Realm.SERVER], buffers[Realm.SHARED], buffers[Realm.CLIENT], config.unique_id
    )
    log.debug("Version id: %s", context.version_id)

    output = VersionedOutput(context.fs, context.output_script_root, context.version_id)
    try:
        packed_files, packed_size = await _write_artifacts(context, output, file_sets, buffers)
    except BaseException:
        await output.abort()
        raise

    with io_errors():
        removed = await output.remove_stale()
    if removed:
        log.info("Deleted %d old gluapack file(s)", removed)

    if context.mode is OutputMode.COPY:
        log.info("Deleting unpacked files...")
        packed_paths = [f.path for s in file_sets.values() for f in s.files]
        with io_errors():
            await asyncio.to_thread(mirror.delete_files, context.output_script_root, packed_paths)

    return PackStatistics(
        total_unpacked_files=total_files,
        total_packed_files=packed_files,
        total_unpacked_size=sum(s.total_size for s in file_sets.values()),
        total_packed_size=packed_size,
        elapsed_s=time.perf_counter() - started,
        version_id=context.version_id,
    )
