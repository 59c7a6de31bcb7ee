"""Protocol for the async filesystem used by the pack and unpack pipelines."""

from typing import Protocol

from .models import AbsolutePath, WriteResult


class FileSystem(Protocol):
    """
    Protocol for async filesystem operations.

    Implementations provide atomic write semantics: readers never observe a
    partially written file. Failures surface as OSError.
    """

    async def exists(self, path: AbsolutePath) -> bool:
        """Check if path exists (file or directory)."""
        ...

    async def is_dir(self, path: AbsolutePath) -> bool:
        """Check if path exists and is a directory."""
        ...

    async def read_bytes(self, path: AbsolutePath) -> bytes:
        """
        Read a file's raw contents.

        Raises:
            FileNotFoundError: If file doesn't exist
            OSError: On read failure
        """
        ...

    async def write_bytes(self, path: AbsolutePath, content: bytes) -> WriteResult:
        """
        Atomically write raw bytes to a file, creating parent directories.

        Raises:
            OSError: On write failure
        """
        ...

    async def write_text(
        self,
        path: AbsolutePath,
        content: str,
        encoding: str = "utf-8",
    ) -> WriteResult:
        """Atomically write text to a file, creating parent directories."""
        ...

    async def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        """Create directory and all parents."""
        ...

    async def listdir(self, path: AbsolutePath) -> list[str]:
        """List directory entry names."""
        ...

    async def rename(self, src: AbsolutePath, dst: AbsolutePath) -> None:
        """Rename a file or directory (atomic on the same filesystem)."""
        ...

    async def remove(self, path: AbsolutePath) -> None:
        """Remove a file."""
        ...

    async def rmdir(self, path: AbsolutePath, recursive: bool = False) -> None:
        """Remove a directory, optionally with its contents."""
        ...
