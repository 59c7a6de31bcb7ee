"""Async filesystem layer for gluapack.

Example:
    >>> from gluapack.core.io import RealFileSystem, absolute_path
    >>> fs = RealFileSystem()
    >>> await fs.write_bytes(absolute_path("out/gluapack.1.cl.lua"), b"--print(1)")
    >>> data = await fs.read_bytes(absolute_path("out/gluapack.1.cl.lua"))
"""

from .impl_real import RealFileSystem
from .models import AbsolutePath, WriteResult, absolute_path
from .protocols import FileSystem

__all__ = [
    "AbsolutePath",
    "absolute_path",
    "WriteResult",
    "FileSystem",
    "RealFileSystem",
]
