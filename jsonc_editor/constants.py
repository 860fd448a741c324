"""Constants used across the jsonc-editor package."""

from __future__ import annotations

import re

from .config import EditorConfig

DEFAULT_CONFIG = EditorConfig()

COMMENT_MARKER = "//"

# JSON string literal, honouring backslash escapes
STRING_PATTERN = re.compile(r'"[^"\\]*(?:\\.[^"\\]*)*"')

# `"item"` or `// "item"` inside an array section
ARRAY_ITEM_PATTERN = re.compile(r'^(//)?\s*"((?:\\.|[^"\\])+)"')
# `"key":` or `// "key":` inside an object section
OBJECT_KEY_PATTERN = re.compile(r'^(//)?\s*"((?:\\.|[^"\\])+)"\s*:')
# Any `"key": value` line
PROPERTY_LINE_PATTERN = re.compile(r'^(\s*)("((?:\\.|[^"\\])*)"\s*:\s*)(.*)$')

# JSONC comments, matched after string literals so strings win
JSONC_TOKEN_PATTERN = re.compile(r'"(?:\\.|[^"\\])*"|//[^\n]*|/\*.*?\*/', re.DOTALL)
TRAILING_COMMA_PATTERN = re.compile(r'"(?:\\.|[^"\\])*"|,(?=\s*[}\]])')

CONFIG_EXTENSIONS = (".json", ".jsonc")
DEFAULT_MAX_FILE_SIZE = DEFAULT_CONFIG.max_file_size
EMPTY_DOCUMENT = "{\n}\n"
