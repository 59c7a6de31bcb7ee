"""Real filesystem implementation using aiofiles for async I/O.

Provides atomic writes via temp file + os.replace().
"""

import asyncio
import contextlib
import os
import shutil
import time
from pathlib import Path
from tempfile import NamedTemporaryFile

import aiofiles  # type: ignore[import-untyped]
import aiofiles.os  # type: ignore[import-untyped]

from .models import AbsolutePath, WriteResult


class RealFileSystem:
    """
    Real filesystem implementation using aiofiles for async I/O.

    Provides atomic writes via temp file + os.replace().
    """

    async def exists(self, path: AbsolutePath) -> bool:
        """Check existence asynchronously."""
        return bool(await aiofiles.os.path.exists(path))

    async def is_dir(self, path: AbsolutePath) -> bool:
        """Check if directory asynchronously."""
        return bool(await aiofiles.os.path.isdir(path))

    async def read_bytes(self, path: AbsolutePath) -> bytes:
        """Read a file's raw contents asynchronously."""
        async with aiofiles.open(path, mode="rb") as f:
            content: bytes = await f.read()
            return content

    async def write_bytes(self, path: AbsolutePath, content: bytes) -> WriteResult:
        """Atomically write raw bytes asynchronously."""
        start = time.perf_counter()
        path_obj = Path(path)

        await aiofiles.os.makedirs(path_obj.parent, exist_ok=True)

        # Temp file lives in the target directory so os.replace stays atomic
        loop = asyncio.get_running_loop()

        def create_temp_file() -> str:
            tmp = NamedTemporaryFile(
                mode="wb",
                dir=path_obj.parent,
                prefix=f".{path_obj.name}.",
                suffix=".tmp",
                delete=False,
            )
            tmp_path = tmp.name
            tmp.close()
            return tmp_path

        tmp_path = await loop.run_in_executor(None, create_temp_file)

        try:
            async with aiofiles.open(tmp_path, mode="wb") as f:
                await f.write(content)

            await loop.run_in_executor(None, os.replace, tmp_path, str(path))
        except BaseException:
            with contextlib.suppress(OSError):
                await aiofiles.os.unlink(tmp_path)
            raise

        duration = (time.perf_counter() - start) * 1000

        return WriteResult(
            path=str(path),
            bytes_written=len(content),
            duration_ms=duration,
        )

    async def write_text(
        self,
        path: AbsolutePath,
        content: str,
        encoding: str = "utf-8",
    ) -> WriteResult:
        """Atomically write text file asynchronously."""
        return await self.write_bytes(path, content.encode(encoding))

    async def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        """Create directory and parents asynchronously."""
        await aiofiles.os.makedirs(path, exist_ok=exist_ok)

    async def listdir(self, path: AbsolutePath) -> list[str]:
        """List directory contents asynchronously."""
        entries: list[str] = await aiofiles.os.listdir(path)
        return entries

    async def rename(self, src: AbsolutePath, dst: AbsolutePath) -> None:
        """Rename a file or directory asynchronously."""
        await aiofiles.os.rename(src, dst)

    async def remove(self, path: AbsolutePath) -> None:
        """Remove file asynchronously."""
        await aiofiles.os.unlink(path)

    async def rmdir(self, path: AbsolutePath, recursive: bool = False) -> None:
        """Remove directory asynchronously."""
        if recursive:
            # shutil.rmtree is blocking, run in executor
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, shutil.rmtree, str(path))
        else:
            await aiofiles.os.rmdir(path)
