"""Tests for realm file collection and validation."""

import asyncio
from pathlib import Path

import pytest

from gluapack.core.config.models import PackConfig
from gluapack.core.errors import IoError, NoLuaFiles, RealmConflict
from gluapack.core.globbing import GlobPattern
from gluapack.core.io import AbsolutePath, RealFileSystem
from gluapack.core.models import Realm, RealmFileSet, ScriptFile
from gluapack.core.packing.collector import (
    collect_all,
    gather_fail_fast,
    select_paths,
)
from gluapack.core.packing.validator import validate_realms


def _patterns(*values: str) -> tuple[GlobPattern, ...]:
    return tuple(GlobPattern(v) for v in values)


class TestSelectPaths:
    """Test per-realm path selection."""

    def test_include_before_entry(self):
        """Test include matches come first, then entry-only matches."""
        candidates = ["autorun/a.lua", "lib/sh_b.lua", "lib/sh_a.lua"]
        selected = select_paths(
            candidates, _patterns("**/sh_*.lua"), _patterns("autorun/*.lua"), ()
        )
        assert selected == ["lib/sh_a.lua", "lib/sh_b.lua", "autorun/a.lua"]

    def test_pattern_order_preserved(self):
        candidates = ["a/x.lua", "b/x.lua"]
        selected = select_paths(candidates, _patterns("b/*.lua", "a/*.lua"), (), ())
        assert selected == ["b/x.lua", "a/x.lua"]

    def test_no_duplicates(self):
        selected = select_paths(
            ["autorun/sh_a.lua"], _patterns("**/sh_*.lua"), _patterns("autorun/*.lua"), ()
        )
        assert selected == ["autorun/sh_a.lua"]

    def test_exclusions_apply_to_entries(self):
        selected = select_paths(
            ["autorun/a.lua", "autorun/skip.lua"],
            (),
            _patterns("autorun/*.lua"),
            _patterns("**/skip.lua"),
        )
        assert selected == ["autorun/a.lua"]


class TestCollectAll:
    """Test collecting every realm from disk."""

    async def test_defaults(self, sample_addon: Path):
        file_sets = await collect_all(RealFileSystem(), sample_addon / "lua", PackConfig())

        assert file_sets[Realm.SERVER].paths == [
            "autorun/server/sv_boot.lua",
            "myaddon/sv_core.lua",
        ]
        assert file_sets[Realm.SERVER].entry_paths == ["autorun/server/sv_boot.lua"]
        assert "vgui/panel.lua" in file_sets[Realm.CLIENT].paths
        assert "vgui/panel.lua" in file_sets[Realm.CLIENT].entry_paths
        assert "autorun/sh_init.lua" in file_sets[Realm.SHARED].entry_paths
        all_paths = [p for s in file_sets.values() for p in s.paths]
        assert "myaddon/unrelated.lua" not in all_paths

    async def test_contents_read_verbatim(self, sample_addon: Path):
        file_sets = await collect_all(RealFileSystem(), sample_addon / "lua", PackConfig())
        by_path = {f.path: f.contents for f in file_sets[Realm.SHARED].files}
        assert by_path["myaddon/sh_util.lua"] == b'-- "quoted" and \\ backslash\n\x00\x01\xff'

    async def test_previous_artifacts_ignored(self, make_addon):
        addon = make_addon(
            {
                "lua/autorun/sh_a.lua": "x",
                "lua/gluapack/abc/gluapack.1.sh.lua": "--x",
                "lua/autorun/abc_gluapack_0.3.0.lua": "-- loader",
            }
        )
        file_sets = await collect_all(RealFileSystem(), addon / "lua", PackConfig())
        assert file_sets[Realm.SHARED].paths == ["autorun/sh_a.lua"]
        assert file_sets[Realm.SHARED].entry_paths == ["autorun/sh_a.lua"]

    async def test_sort_files(self, make_addon):
        addon = make_addon({"lua/zz/sh_a.lua": "", "lua/autorun/sh_b.lua": ""})
        config = PackConfig(sort_files=True, include_sh=["zz/*.lua", "autorun/*.lua"])
        file_sets = await collect_all(RealFileSystem(), addon / "lua", config)
        assert file_sets[Realm.SHARED].paths == ["autorun/sh_b.lua", "zz/sh_a.lua"]

    async def test_read_failure_is_io_error(self, make_addon):
        addon = make_addon({"lua/autorun/sh_a.lua": ""})

        class FailingFileSystem(RealFileSystem):
            async def read_bytes(self, path: AbsolutePath) -> bytes:
                raise PermissionError(13, "Permission denied", str(path))

        with pytest.raises(IoError) as exc_info:
            await collect_all(FailingFileSystem(), addon / "lua", PackConfig())
        assert exc_info.value.path == "autorun/sh_a.lua"


class TestGatherFailFast:
    """Test fail-fast concurrent gathering."""

    async def test_results_in_input_order(self):
        async def value(v: int, delay: float) -> int:
            await asyncio.sleep(delay)
            return v

        assert await gather_fail_fast([value(1, 0.02), value(2, 0.0)]) == [1, 2]

    async def test_cancels_pending_on_failure(self):
        cancelled = asyncio.Event()

        async def slow() -> None:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def fail() -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await gather_fail_fast([slow(), fail()])
        assert cancelled.is_set()

    async def test_empty(self):
        assert await gather_fail_fast([]) == []


class TestValidateRealms:
    """Test cross-realm validation."""

    def _set(self, realm: Realm, *paths: str) -> RealmFileSet:
        return RealmFileSet(realm=realm, files=[ScriptFile(p, b"") for p in paths])

    def test_counts_files(self):
        total = validate_realms(
            self._set(Realm.SERVER, "a.lua"),
            self._set(Realm.CLIENT, "b.lua"),
            self._set(Realm.SHARED, "c.lua", "d.lua"),
        )
        assert total == 4

    def test_conflict_names_path(self):
        with pytest.raises(RealmConflict) as exc_info:
            validate_realms(
                self._set(Realm.SERVER, "a.lua"),
                self._set(Realm.CLIENT, "x.lua"),
                self._set(Realm.SHARED, "x.lua"),
            )
        assert exc_info.value.path == "x.lua"
        assert "x.lua" in str(exc_info.value)

    def test_nothing_found(self):
        with pytest.raises(NoLuaFiles):
            validate_realms(
                self._set(Realm.SERVER), self._set(Realm.CLIENT), self._set(Realm.SHARED)
            )
