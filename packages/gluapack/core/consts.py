"""Constants shared by the packer and unpacker."""

from __future__ import annotations

# Tool version, embedded in the bootstrap loader's filename and header.
TOOL_VERSION = "0.3.0"

# The game will not network a Lua file larger than this.
MAX_LUA_SIZE = 65535

# Client-side frames are read through a NUL-terminated string API, so the
# delimited frame format separates fields with this byte instead of NUL.
TERMINATOR_HACK = b"|"

VERSION_ID_LENGTH = 16
CHUNK_HASH_LENGTH = 20

CONFIG_FILE_NAME = "gluapack.json"
CONFIG_FILE_FALLBACKS = ("gluapack.yaml", "gluapack.yml")

SCRIPT_ROOT_NAME = "lua"
ARTIFACT_DIR_NAME = "gluapack"
AUTORUN_DIR_NAME = "autorun"
SERVER_FILE_NAME = "gluapack.sv.lua"
MANIFEST_FILE_NAME = "manifest.lua"
PARTIAL_DIR_SUFFIX = ".partial"

# Globs (relative to the script root) that locate artifacts of previous runs.
VERSION_DIR_GLOB = "gluapack/*"
CHUNK_FILE_GLOB = "gluapack/*/*"
LOADER_GLOB = "autorun/*_gluapack_*.lua"


def loader_file_name(version_id: str) -> str:
    """Bootstrap loader file name for a version id."""
    return f"{version_id}_gluapack_{TOOL_VERSION}.lua"


def chunk_file_name(index: int, realm: str) -> str:
    """Chunk artifact file name (1-based index)."""
    return f"gluapack.{index}.{realm}.lua"
