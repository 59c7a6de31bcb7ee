"""Models for the filesystem layer.

Provides a type-safe absolute path wrapper and operation result types.
"""

from pathlib import Path
from typing import NewType

from pydantic import BaseModel, Field

AbsolutePath = NewType("AbsolutePath", Path)


def absolute_path(path: str | Path) -> AbsolutePath:
    """
    Construct an absolute path, resolving it against the working directory.

    Example:
        >>> p = absolute_path("addon/lua")
        >>> assert Path(p).is_absolute()
    """
    return AbsolutePath(Path(path).resolve())


class WriteResult(BaseModel):
    """Result of a filesystem write operation.

    Attributes:
        path: Final path written
        bytes_written: Number of bytes written
        duration_ms: Operation duration in milliseconds
    """

    path: str = Field(description="Final path written")
    bytes_written: int = Field(description="Number of bytes written", ge=0)
    duration_ms: float = Field(description="Operation duration in milliseconds", ge=0.0)
