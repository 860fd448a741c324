"""Editor settings and the TOML files they are loaded from.

Settings come from `[tool.jsonc-editor]` in the nearest `pyproject.toml`
or from `.jsonc-editor.toml`, then CLI flags override them.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
import tomllib


@dataclass
class EditorConfig:
    """Configuration for locating and editing JSONC config files.

    Attributes:
        file_name: Name of the config file inside a scope directory.
        global_dir: Directory holding the global config file; ``~`` is expanded.
        entry_indent: Indentation used for entries inserted into a section.
        top_level_indent: Indentation used for properties inserted at the root.
        indent_spaces: Width in spaces for `entry_indent` (overrides it when set).
        json_indent: Indentation width used when serializing composite values.
        max_file_size: Maximum config file size in bytes that will be processed.

    Examples:
        EditorConfig(file_name="settings.jsonc", json_indent=4)
    """

    # Locations
    file_name: str = "opencode.json"
    global_dir: str = "~/.config/opencode"

    # Formatting
    entry_indent: str = "    "
    top_level_indent: str = "  "
    indent_spaces: int | None = None
    json_indent: int = 2

    # Limits
    max_file_size: int = 1024 * 1024


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`json_indent` must be a non-negative integer")
    """


def load_config(search_path: Path) -> EditorConfig:
    """Find the editor settings that apply to a project directory.

    Each directory from `search_path` up to the root is checked for a
    `pyproject.toml` with a ``[tool.jsonc-editor]`` table, then for a
    `.jsonc-editor.toml` with a ``[jsonc-editor]`` or ``[tool.jsonc-editor]``
    table. The first table found wins; a `pyproject.toml` without the table
    does not stop the walk. Unreadable or malformed TOML files are ignored.

    Args:
        search_path: Project directory, usually the one holding the edited
            `opencode.json`.

    Returns:
        EditorConfig: Settings from the first table found, or the defaults.

    Raises:
        ConfigError: If the table is present but not a mapping or contains
            unsupported keys.

    Examples:
        load_config(Path.cwd())
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "jsonc-editor")]
        )
        if pyproject_config is not None:
            return normalize_config(pyproject_config)

        dotfile_config = _load_from_file(
            current / ".jsonc-editor.toml",
            table_paths=[("jsonc-editor",), ("tool", "jsonc-editor")],
        )
        if dotfile_config is not None:
            return normalize_config(dotfile_config)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return EditorConfig()


_MISSING = object()


def _load_from_file(config_file: Path, table_paths: list[tuple[str, ...]]) -> EditorConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> EditorConfig:
    table_display = ".".join(table_path)

    if raw_config is None:
        return EditorConfig()

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    if not raw_config:
        return EditorConfig()

    try:
        return EditorConfig(**raw_config)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def normalize_config(config: EditorConfig) -> EditorConfig:
    entry_indent = config.entry_indent
    if config.indent_spaces is not None:
        _ensure_integers({"indent_spaces": config.indent_spaces})
        if config.indent_spaces <= 0:
            raise ConfigError("`indent_spaces` must be a positive integer")
        entry_indent = " " * config.indent_spaces

    return replace(config, entry_indent=entry_indent)


def validate_config(config: EditorConfig) -> None:
    """Reject settings that would produce a broken path or invalid JSONC.

    Args:
        config: Settings to check.

    Raises:
        ConfigError: If `file_name` is empty or contains a path separator,
            an indent holds characters other than spaces and tabs, or a
            numeric setting is out of range.

    Examples:
        validate_config(EditorConfig(json_indent=4))
    """
    config = normalize_config(config)

    _ensure_integers(
        {
            "json_indent": config.json_indent,
            "max_file_size": config.max_file_size,
            **({"indent_spaces": config.indent_spaces} if config.indent_spaces is not None else {}),
        }
    )

    if not config.file_name:
        raise ConfigError("`file_name` must not be empty")
    if "/" in config.file_name or "\\" in config.file_name:
        raise ConfigError("`file_name` must not contain path separators")
    if not config.global_dir:
        raise ConfigError("`global_dir` must not be empty")

    for key in ("entry_indent", "top_level_indent"):
        value = getattr(config, key)
        if not isinstance(value, str) or value.strip(" \t"):
            raise ConfigError(f"`{key}` must contain only spaces and tabs")

    if config.json_indent < 0:
        raise ConfigError("`json_indent` must be a non-negative integer")
    _ensure_positive({"max_file_size": config.max_file_size})


def apply_overrides(config: EditorConfig, **overrides: object) -> EditorConfig:
    """Layer CLI flag values over file settings.

    Flags left unset arrive as None and keep the file value. An explicit
    `entry_indent` clears `indent_spaces`, so the literal indent is used
    instead of a width from the file.

    Args:
        config: Settings loaded from disk.
        overrides: Flag values keyed by `EditorConfig` field name.

    Returns:
        EditorConfig: Updated settings, or `config` itself when every flag is
            unset.

    Raises:
        TypeError: If an override name is not defined on `EditorConfig`.
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if "entry_indent" in changes and "indent_spaces" not in changes:
        changes["indent_spaces"] = None
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> EditorConfig:
    """Resolve the settings the CLI edits with.

    File settings found from `search_path` are combined with flag values,
    `indent_spaces` is turned into an `entry_indent`, and the result is
    checked before any document is touched.

    Args:
        search_path: Project directory to start the settings lookup from.
        overrides: Flag values keyed by `EditorConfig` field name; None means
            the flag was not given.

    Returns:
        EditorConfig: Validated settings for the edit.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), file_name="settings.jsonc")
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    config = normalize_config(config)
    validate_config(config)
    return config


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
