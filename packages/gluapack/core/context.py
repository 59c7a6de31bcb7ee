"""Run context threaded through every pack and unpack stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from gluapack.core.consts import SCRIPT_ROOT_NAME
from gluapack.core.io import FileSystem, RealFileSystem


class OutputMode(str, Enum):
    """Where a run writes its results."""

    IN_PLACE = "in-place"
    COPY = "copy"
    NO_COPY = "no-copy"


@dataclass
class RunContext:
    """Shared state of one pack or unpack run.

    Attributes:
        addon_dir: Addon root being read (contains ``lua/``)
        out_dir: Output addon root; None for in-place runs
        no_copy: Only write results, without mirroring the addon
        fs: Filesystem used for artifact I/O

    Example:
        >>> context = RunContext(addon_dir=Path("my_addon"), out_dir=Path("my_addon-packed"))
        >>> context.mode
        <OutputMode.COPY: 'copy'>
        >>> context.output_script_root
        PosixPath('my_addon-packed/lua')
    """

    addon_dir: Path
    out_dir: Path | None = None
    no_copy: bool = False
    fs: FileSystem = field(default_factory=RealFileSystem)

    @property
    def mode(self) -> OutputMode:
        if self.out_dir is None:
            return OutputMode.IN_PLACE
        return OutputMode.NO_COPY if self.no_copy else OutputMode.COPY

    @property
    def script_root(self) -> Path:
        """The input ``lua/`` directory."""
        return self.addon_dir / SCRIPT_ROOT_NAME

    @property
    def output_root(self) -> Path:
        return self.out_dir if self.out_dir is not None else self.addon_dir

    @property
    def output_script_root(self) -> Path:
        """The ``lua/`` directory results are written under."""
        return self.output_root / SCRIPT_ROOT_NAME
