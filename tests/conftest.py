"""Shared pytest fixtures for gluapack tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

# ============================================================================
# Addon Fixtures
# ============================================================================

AddonFactory = Callable[[dict[str, bytes | str]], Path]


def write_tree(root: Path, files: dict[str, bytes | str]) -> None:
    """Write files (relative forward-slash paths) under root."""
    for rel, contents in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(contents, str):
            path.write_text(contents, encoding="utf-8")
        else:
            path.write_bytes(contents)


def read_tree(root: Path) -> dict[str, bytes]:
    """Read every file under root, keyed by relative forward-slash path."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def make_addon(tmp_path: Path) -> AddonFactory:
    """Factory fixture creating an addon directory from a file mapping.

    Keys are relative to the addon root, so script files live under ``lua/``.
    """
    counter = 0

    def _make(files: dict[str, bytes | str]) -> Path:
        nonlocal counter
        counter += 1
        addon = tmp_path / f"addon{counter}"
        (addon / "lua").mkdir(parents=True)
        write_tree(addon, files)
        return addon

    return _make


@pytest.fixture
def sample_files() -> dict[str, bytes | str]:
    """A small addon touching every realm, entities and weapons."""
    return {
        "lua/autorun/sh_init.lua": 'print("shared init")\n',
        "lua/autorun/server/sv_boot.lua": 'include("myaddon/sv_core.lua")\n',
        "lua/autorun/client/cl_boot.lua": 'include("myaddon/cl_hud.lua")\r\nprint(1)\r\n',
        "lua/myaddon/sv_core.lua": "local secret = 42\n",
        "lua/myaddon/cl_hud.lua": "hook.Add('HUDPaint', 'x', function() end)\n",
        "lua/myaddon/sh_util.lua": "-- \"quoted\" and \\ backslash\n\x00\x01\xff",
        "lua/vgui/panel.lua": "local PANEL = {}\n",
        "lua/entities/ent_box/sh_shared.lua": "ENT.Type = 'anim'\n",
        "lua/weapons/sh_pistol.lua": "SWEP.PrintName = 'Pistol'\n",
        "lua/myaddon/unrelated.lua": "-- matched by no pattern\n",
        "materials/icon.png": b"\x89PNG\r\n\x1a\n",
        "addon.json": '{"title": "test"}',
    }


@pytest.fixture
def sample_addon(make_addon: AddonFactory, sample_files: dict[str, bytes | str]) -> Path:
    """A sample addon on disk."""
    return make_addon(sample_files)


@pytest.fixture
def tree_reader() -> Callable[[Path], dict[str, bytes]]:
    """Provide read_tree() to tests."""
    return read_tree


@pytest.fixture
def tree_writer() -> Callable[[Path, dict[str, bytes | str]], None]:
    """Provide write_tree() to tests."""
    return write_tree
