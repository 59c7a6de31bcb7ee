"""Configuration management for gluapack."""

from gluapack.core.config.loader import (
    detect_format,
    dump_config,
    find_config_file,
    load_config,
    load_pack_config,
)
from gluapack.core.config.models import CompressionMode, PackConfig, WrapMode

__all__ = [
    # Loaders
    "detect_format",
    "find_config_file",
    "load_config",
    "load_pack_config",
    "dump_config",
    # Models
    "PackConfig",
    "WrapMode",
    "CompressionMode",
]
