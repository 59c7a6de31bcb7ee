"""Tests for packing configuration models and loading."""

import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from gluapack.core.config import (
    CompressionMode,
    PackConfig,
    WrapMode,
    detect_format,
    dump_config,
    find_config_file,
    load_config,
    load_pack_config,
)
from gluapack.core.errors import ConfigParseError


class TestPackConfigDefaults:
    """Test default values."""

    def test_default_patterns(self):
        config = PackConfig()
        assert config.include_sh == ["**/sh_*.lua", "**/*.sh.lua"]
        assert config.include_cl == ["**/cl_*.lua", "**/*.cl.lua", "vgui/*.lua"]
        assert config.include_sv == ["**/sv_*.lua", "**/*.sv.lua"]
        assert config.exclude == []
        assert config.entry_cl == ["autorun/client/*.lua", "vgui/*.lua"]
        assert config.entry_sh == ["autorun/*.lua"]
        assert config.entry_sv == ["autorun/server/*.lua"]

    def test_default_options(self):
        config = PackConfig()
        assert config.unique_id is None
        assert config.wrap is WrapMode.COMMENT
        assert config.compression is CompressionMode.NONE
        assert config.sort_files is False
        assert config.has_entries

    def test_partial_override_keeps_other_defaults(self):
        config = PackConfig.model_validate({"exclude": ["tests/**"]})
        assert config.exclude == ["tests/**"]
        assert config.entry_sh == ["autorun/*.lua"]

    def test_empty_entries(self):
        config = PackConfig(entry_cl=[], entry_sh=[], entry_sv=[])
        assert not config.has_entries


class TestPackConfigValidation:
    """Test rejection of invalid configurations."""

    def test_unknown_key(self):
        with pytest.raises(ValidationError):
            PackConfig.model_validate({"include_server": ["*.lua"]})

    def test_malformed_pattern(self):
        with pytest.raises(ValidationError):
            PackConfig(exclude=["/absolute/*.lua"])

    def test_wrong_type(self):
        with pytest.raises(ValidationError):
            PackConfig.model_validate({"entry_sh": "autorun/*.lua"})

    @pytest.mark.parametrize("unique_id", ["", "a/b", "..", "with space"])
    def test_unsafe_unique_id(self, unique_id: str):
        with pytest.raises(ValidationError):
            PackConfig(unique_id=unique_id)

    def test_compression_requires_literal_wrap(self):
        with pytest.raises(ValidationError, match="literal"):
            PackConfig(compression=CompressionMode.LZMA)

        config = PackConfig(compression=CompressionMode.LZMA, wrap=WrapMode.LITERAL)
        assert config.compression is CompressionMode.LZMA

    def test_backslash_patterns_normalized(self):
        assert PackConfig(exclude=["tests\\*.lua"]).exclude == ["tests/*.lua"]


class TestConfigLoading:
    """Test reading config files from an addon."""

    def test_detect_format(self):
        assert detect_format("gluapack.json") == "json"
        assert detect_format("gluapack.YAML") == "yaml"
        with pytest.raises(ValueError):
            detect_format("gluapack.toml")

    def test_missing_file_uses_defaults(self, tmp_path: Path, caplog):
        with caplog.at_level(logging.WARNING):
            config = load_pack_config(tmp_path)
        assert config == PackConfig()
        assert "gluapack.json not found" in caplog.text

    def test_json_file(self, tmp_path: Path):
        (tmp_path / "gluapack.json").write_text(json.dumps({"unique_id": "my_addon"}))
        assert load_pack_config(tmp_path).unique_id == "my_addon"

    def test_yaml_fallback(self, tmp_path: Path):
        (tmp_path / "gluapack.yaml").write_text("sort_files: true\nexclude:\n  - tests/**\n")
        config = load_pack_config(tmp_path)
        assert config.sort_files is True
        assert config.exclude == ["tests/**"]

    def test_json_preferred_over_yaml(self, tmp_path: Path):
        (tmp_path / "gluapack.json").write_text("{}")
        (tmp_path / "gluapack.yml").write_text("sort_files: true\n")
        assert find_config_file(tmp_path) == tmp_path / "gluapack.json"

    def test_empty_yaml_is_empty_config(self, tmp_path: Path):
        path = tmp_path / "gluapack.yml"
        path.write_text("")
        assert load_config(path) == {}

    @pytest.mark.parametrize(
        "text",
        ["{not json", "[]", '{"bogus": 1}', '{"compression": "lzma"}'],
    )
    def test_invalid_file(self, tmp_path: Path, text: str):
        (tmp_path / "gluapack.json").write_text(text)
        with pytest.raises(ConfigParseError):
            load_pack_config(tmp_path)

    def test_dump_round_trips(self):
        config = PackConfig(unique_id="x", wrap=WrapMode.LITERAL, sort_files=True)
        dumped = dump_config(config)
        assert json.loads(dumped)["wrap"] == "literal"
        assert PackConfig.model_validate_json(dumped) == config
