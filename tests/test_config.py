from __future__ import annotations

import textwrap
import pytest
from pathlib import Path

from jsonc_editor.config import (
    ConfigError,
    EditorConfig,
    apply_overrides,
    build_config,
    load_config,
    validate_config,
)


def _write_pyproject(base: Path, body: str) -> Path:
    path = base / "pyproject.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def _write_dotfile(base: Path, body: str) -> Path:
    path = base / ".jsonc-editor.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def test_loads_config_from_pyproject(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.jsonc-editor]
        file_name = "settings.jsonc"
        global_dir = "~/.config/settings"
        entry_indent = "\\t"
        top_level_indent = "    "
        json_indent = 4
        max_file_size = 10
        """,
    )

    config = load_config(tmp_path)

    assert config == EditorConfig(
        file_name="settings.jsonc",
        global_dir="~/.config/settings",
        entry_indent="\t",
        top_level_indent="    ",
        json_indent=4,
        max_file_size=10,
    )


def test_loads_config_from_dotfile(tmp_path: Path):
    _write_dotfile(
        tmp_path,
        """
        [jsonc-editor]
        file_name = "dot.json"
        """,
    )
    nested = tmp_path / "child"
    nested.mkdir()

    config = load_config(nested)

    assert config.file_name == "dot.json"


def test_dotfile_accepts_tool_table(tmp_path: Path):
    _write_dotfile(
        tmp_path,
        """
        [tool.jsonc-editor]
        json_indent = 3
        """,
    )

    assert load_config(tmp_path).json_indent == 3


def test_pyproject_wins_over_dotfile_in_same_directory(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.jsonc-editor]
        file_name = "from-pyproject.json"
        """,
    )
    _write_dotfile(
        tmp_path,
        """
        [jsonc-editor]
        file_name = "from-dotfile.json"
        """,
    )

    assert load_config(tmp_path).file_name == "from-pyproject.json"


def test_load_config_walks_up_directories(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.jsonc-editor]
        file_name = "root.json"
        """,
    )
    nested = tmp_path / "a" / "b" / "c"
    nested.mkdir(parents=True)

    config = load_config(nested)

    assert config.file_name == "root.json"


def test_empty_config_table_stops_inheritance(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.jsonc-editor]
        file_name = "root.json"
        """,
    )
    child = tmp_path / "child"
    child.mkdir()
    _write_pyproject(
        child,
        """
        [tool.jsonc-editor]
        """,
    )

    config = load_config(child)

    assert config.file_name == EditorConfig().file_name


def test_pyproject_without_table_is_skipped(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.jsonc-editor]
        json_indent = 4
        """,
    )
    child = tmp_path / "child"
    child.mkdir()
    _write_pyproject(
        child,
        """
        [project]
        name = "unrelated"
        """,
    )

    assert load_config(child).json_indent == 4


def test_load_config_returns_defaults_when_missing(tmp_path: Path):
    config = load_config(tmp_path)

    assert config == EditorConfig()


def test_load_config_skips_invalid_toml(tmp_path: Path):
    invalid_dir = tmp_path / "invalid"
    invalid_dir.mkdir()
    _write_pyproject(invalid_dir, "not = {valid")
    _write_pyproject(
        tmp_path,
        """
        [tool.jsonc-editor]
        file_name = "parent.json"
        """,
    )

    nested = invalid_dir / "child"
    nested.mkdir()
    config = load_config(nested)

    assert config.file_name == "parent.json"


def test_load_config_errors_on_invalid_table(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.jsonc-editor]
        file_name = "ok.json"
        unexpected = true
        """,
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_errors_on_non_table_value(tmp_path: Path):
    _write_dotfile(tmp_path, 'jsonc-editor = "nope"\n')

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_indent_spaces_sets_entry_indent(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.jsonc-editor]
        indent_spaces = 2
        """,
    )

    config = load_config(tmp_path)

    assert config.indent_spaces == 2
    assert config.entry_indent == "  "


def test_apply_overrides_ignores_none_and_clears_indent_spaces():
    base = EditorConfig(indent_spaces=2, entry_indent="  ")

    assert apply_overrides(base, file_name=None) is base

    updated = apply_overrides(base, entry_indent="\t", json_indent=None)
    assert updated.entry_indent == "\t"
    assert updated.indent_spaces is None


def test_build_config_applies_overrides(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.jsonc-editor]
        file_name = "root.json"
        """,
    )

    config = build_config(tmp_path, file_name="override.jsonc", json_indent=None)

    assert config.file_name == "override.jsonc"
    assert config.json_indent == EditorConfig().json_indent


def test_build_config_validates(tmp_path: Path):
    with pytest.raises(ConfigError):
        build_config(tmp_path, json_indent=-1)


@pytest.mark.parametrize(
    "config",
    [
        EditorConfig(file_name=""),
        EditorConfig(file_name="nested/opencode.json"),
        EditorConfig(file_name="nested\\opencode.json"),
        EditorConfig(global_dir=""),
        EditorConfig(entry_indent="--"),
        EditorConfig(top_level_indent=" x"),
        EditorConfig(json_indent=-1),
        EditorConfig(indent_spaces=0),
        EditorConfig(max_file_size=0),
    ],
)
def test_validate_config_rejects_invalid_values(config: EditorConfig):
    with pytest.raises(ConfigError):
        validate_config(config)


@pytest.mark.parametrize(
    "config",
    [
        EditorConfig(max_file_size="big"),  # type: ignore[arg-type]
        EditorConfig(json_indent="2"),  # type: ignore[arg-type]
        EditorConfig(json_indent=True),
        EditorConfig(indent_spaces="4"),  # type: ignore[arg-type]
    ],
)
def test_validate_config_rejects_non_numeric_limits(config: EditorConfig):
    with pytest.raises(ConfigError):
        validate_config(config)


def test_validate_config_accepts_defaults_and_tabs():
    validate_config(EditorConfig())
    validate_config(EditorConfig(entry_indent="\t\t", top_level_indent="", json_indent=0))
