"""Shared utilities for gluapack."""

from gluapack.core.utils.formatting import format_file_size, lua_string

# Note: logging module not imported here; import it directly:
# from gluapack.core.utils.logging import configure_logging

__all__ = [
    "format_file_size",
    "lua_string",
]
