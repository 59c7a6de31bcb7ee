"""Bootstrap loader generation.

The loader is an autorun script that reads the packed artifacts back into a
virtual file table, runs the entry files in load order and registers
packed entities, weapons and effects.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError
from pydantic import BaseModel, Field

from gluapack.core.config.models import CompressionMode, WrapMode
from gluapack.core.consts import TOOL_VERSION
from gluapack.core.errors import PackingError
from gluapack.core.load_order import sort_paths
from gluapack.core.models import Realm
from gluapack.core.utils.formatting import lua_string

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).parent / "templates"
_TEMPLATE_NAME = "loader.lua.j2"

_ENTITY_RE = re.compile(
    r"^(?:gamemodes/([^/]+/entities/)|addons/[^/]+/lua/)?"
    r"((?:entities|weapons|effects)/[^/]+(?:\.lua|/(?:cl_init|init|shared)\.lua))$"
)
_HEADER_RE = re.compile(
    r"^-- gluapack (?P<tool_version>\S+) id=(?P<version_id>\S+) "
    r"wrap=(?P<wrap>\w+) compression=(?P<compression>\w+)\s*$"
)

SCRIPTED_KINDS = ("entities", "weapons", "effects")


def extract_entity(path: str) -> str | None:
    """Return the scripted entity/weapon/effect file a path refers to, if any.

    Example:
        >>> extract_entity("weapons/weapon_foo/shared.lua")
        'weapons/weapon_foo/shared.lua'
        >>> extract_entity("gamemodes/sandbox/entities/entities/prop/init.lua")
        'sandbox/entities/entities/prop/init.lua'
        >>> extract_entity("autorun/foo.lua") is None
        True
    """
    match = _ENTITY_RE.match(path)
    if match is None:
        return None
    return (match.group(1) or "") + match.group(2)


def scripted_classes(paths: Iterable[str]) -> dict[str, list[str]]:
    """Group packed script paths into sorted scripted class names per kind.

    Only paths directly under ``entities/``, ``weapons/`` or ``effects/`` of
    the script root are registered by the loader.
    """
    classes: dict[str, set[str]] = {kind: set() for kind in SCRIPTED_KINDS}
    for path in paths:
        if extract_entity(path) != path:
            continue
        kind, name = path.split("/", 2)[:2]
        classes[kind].add(name.removesuffix(".lua"))
    return {kind: sorted(names) for kind, names in classes.items()}


def _lua_table(values: Iterable[str]) -> str:
    return "{" + ",".join(lua_string(v) for v in values) + "}"


class LoaderHeader(BaseModel):
    """Run metadata recorded on the first line of the loader."""

    tool_version: str = TOOL_VERSION
    version_id: str
    wrap: WrapMode = WrapMode.COMMENT
    compression: CompressionMode = CompressionMode.NONE

    def render(self) -> str:
        return (
            f"-- gluapack {self.tool_version} id={self.version_id} "
            f"wrap={self.wrap.value} compression={self.compression.value}"
        )

    @classmethod
    def parse(cls, text: str) -> LoaderHeader | None:
        """Read the header from loader text; None if the first line is not one."""
        first_line = text.split("\n", 1)[0]
        match = _HEADER_RE.match(first_line)
        if match is None:
            return None
        try:
            return cls.model_validate(match.groupdict())
        except ValueError:
            return None


class LoaderSpec(BaseModel):
    """Everything the loader template needs."""

    header: LoaderHeader
    entries: dict[Realm, list[str]] = Field(default_factory=dict)
    chunk_counts: dict[Realm, int] = Field(default_factory=dict)
    has_server: bool = False
    has_manifest: bool = False
    packed_paths: list[str] = Field(default_factory=list)


class LoaderRenderer:
    """Renders the bootstrap loader with Jinja2 in strict mode."""

    def __init__(self) -> None:
        self.env = Environment(
            loader=FileSystemLoader(_TEMPLATE_DIR),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False,
        )
        self.env.filters["lua_string"] = lua_string
        self.env.filters["lua_table"] = _lua_table

    def render(self, spec: LoaderSpec) -> str:
        """Render the loader script.

        Entry arrays are sorted into load order here.

        Raises:
            PackingError: If the template fails to render
        """
        classes = scripted_classes(spec.packed_paths)
        variables = {
            "header": spec.header.render(),
            "version_id": spec.header.version_id,
            "wrap": spec.header.wrap.value,
            "compression": spec.header.compression.value,
            "compressed": spec.header.compression is not CompressionMode.NONE,
            "entry_sv": sort_paths(spec.entries.get(Realm.SERVER, [])),
            "entry_cl": sort_paths(spec.entries.get(Realm.CLIENT, [])),
            "entry_sh": sort_paths(spec.entries.get(Realm.SHARED, [])),
            "chunks_sh": spec.chunk_counts.get(Realm.SHARED, 0),
            "chunks_cl": spec.chunk_counts.get(Realm.CLIENT, 0),
            "has_server": spec.has_server,
            "has_manifest": spec.has_manifest,
            **classes,
        }

        try:
            text = self.env.get_template(_TEMPLATE_NAME).render(**variables)
        except TemplateError as e:
            raise PackingError(f"Failed to render loader: {e}") from e

        logger.debug(
            "Rendered loader with %d/%d/%d entries (sv/cl/sh)",
            len(variables["entry_sv"]),
            len(variables["entry_cl"]),
            len(variables["entry_sh"]),
        )
        return text


def render_loader(spec: LoaderSpec) -> str:
    """Render the bootstrap loader script for a pack run."""
    return LoaderRenderer().render(spec)
