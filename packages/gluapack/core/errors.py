"""Error taxonomy for packing and unpacking.

Every failure surfaced to callers is a GluapackError. Packing stages are
fail-fast: the first error aborts the run and propagates unchanged.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager


class GluapackError(Exception):
    """Base exception for all gluapack errors."""


class PackingError(GluapackError):
    """Raised when an addon cannot be packed."""


class UnpackingError(GluapackError):
    """Raised when packed artifacts cannot be unpacked."""


class IoError(PackingError, UnpackingError):
    """Filesystem failure while reading inputs or writing artifacts.

    Attributes:
        cause: Original OSError
        path: Path involved in the failed operation (if known)
    """

    def __init__(self, cause: OSError, path: str | None = None) -> None:
        self.cause = cause
        self.path = path if path is not None else getattr(cause, "filename", None)
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.path:
            return f"IO error: {self.cause.strerror or self.cause} ({self.path})"
        return f"IO error: {self.cause}"


class ConfigParseError(PackingError):
    """Configuration file is malformed or fails validation."""

    def __init__(self, message: str) -> None:
        super().__init__(f"gluapack config error: {message}")


class RealmConflict(PackingError):
    """The same script path was claimed by more than one realm.

    Attributes:
        path: The offending script path
    """

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"Realm conflict! This file is included in multiple realms: {path}\n"
            "Please tinker your config and resolve the realm conflicts."
        )


class NoLuaFiles(PackingError):
    """No script files matched the inclusion configuration."""

    def __init__(self) -> None:
        super().__init__("No Lua files were found in your addon using this inclusion configuration")


class CompressionError(PackingError):
    """The optional compression step failed."""


class Utf8Error(UnpackingError):
    """A path or length token in a packed buffer is not valid UTF-8."""


class FormatError(UnpackingError):
    """A packed buffer or chunk artifact is malformed."""


@contextmanager
def io_errors(path: str | None = None) -> Iterator[None]:
    """Re-raise OSError raised inside the block as IoError."""
    try:
        yield
    except OSError as e:
        raise IoError(e, path) from e
