"""
jsonc-editor: structural editing of JSON-with-comments config files.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    jsonc-editor list plugin
    jsonc-editor disable plugin my-plugin

Library Usage:
    from pathlib import Path
    from jsonc_editor import parse_array_section, toggle_line

    text = Path("opencode.json").read_text()
    for item in parse_array_section(text, "plugin"):
        if item.key == "my-plugin":
            text = toggle_line(text, item.start_line, enable=False)
            break
    Path("opencode.json").write_text(text)

Line positions returned by the scanners are only valid for the exact text they
were scanned from; re-scan after every edit, or use `JsoncDocument`, which
enforces this.
"""

from .config import ConfigError, EditorConfig
from .document import JsoncDocument
from .exceptions import (
    EditError,
    JsoncDecodeError,
    SerializationError,
    StaleItemError,
    StorageError,
)
from .filesystem import ConfigStore
from .jsonc import parse_item_value, parse_jsonc
from .lines import (
    find_balanced_block_end,
    find_section_start,
    get_brace_and_bracket_delta,
    get_brace_delta,
    strip_strings,
)
from .models import ConfigItem, ConfigScope
from .mutators import (
    add_array_item,
    add_item,
    changed_keys,
    remove_item,
    toggle_block,
    toggle_line,
    update_top_level_key,
    update_top_level_keys,
)
from .scanner import parse_array_section, parse_object_section, scan_section

__version__ = "0.1.0"

__all__ = [
    # Scanning
    "parse_array_section",
    "parse_object_section",
    "scan_section",
    # Editing
    "toggle_line",
    "toggle_block",
    "remove_item",
    "add_item",
    "add_array_item",
    "update_top_level_key",
    "update_top_level_keys",
    "changed_keys",
    "JsoncDocument",
    # Line primitives
    "strip_strings",
    "get_brace_delta",
    "get_brace_and_bracket_delta",
    "find_section_start",
    "find_balanced_block_end",
    # Values
    "parse_jsonc",
    "parse_item_value",
    # Storage and configuration
    "ConfigStore",
    "ConfigScope",
    "EditorConfig",
    # Data models
    "ConfigItem",
    # Exceptions
    "ConfigError",
    "EditError",
    "JsoncDecodeError",
    "SerializationError",
    "StaleItemError",
    "StorageError",
    # Version
    "__version__",
]
