"""Minimal JSONC value parser.

Turns the raw text of a document (or of a single scanned item) into Python
values. Comments and trailing commas are blanked out with spaces so that
decode errors still report positions in the original text.
"""

from __future__ import annotations

import json
import re

from .constants import JSONC_TOKEN_PATTERN, OBJECT_KEY_PATTERN, TRAILING_COMMA_PATTERN
from .exceptions import JsoncDecodeError
from .models import ConfigItem
from .mutators import toggle_block


def _blank(text: str) -> str:
    return re.sub(r"[^\n]", " ", text)


def strip_comments(text: str) -> str:
    """Replace ``//`` and ``/* */`` comments outside strings with spaces."""

    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token.startswith('"'):
            return token
        return _blank(token)

    return JSONC_TOKEN_PATTERN.sub(_replace, text)


def strip_trailing_commas(text: str) -> str:
    """Replace commas that directly precede ``}`` or ``]`` with spaces."""

    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        return " " if token == "," else token

    return TRAILING_COMMA_PATTERN.sub(_replace, text)


def parse_jsonc(text: str) -> object:
    """Parse JSON with comments and trailing commas.

    Args:
        text: JSONC text.

    Returns:
        object: Decoded value; an empty dict when `text` is empty or blank.

    Raises:
        JsoncDecodeError: If the text is not valid once comments and trailing
            commas are removed.

    Examples:
        parse_jsonc('{\\n  // theme\\n  "theme": "dark",\\n}')  # {"theme": "dark"}
    """
    if not text.strip():
        return {}

    cleaned = strip_trailing_commas(strip_comments(text))
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as error:
        raise JsoncDecodeError(error.msg, error.lineno, error.colno) from error


def parse_item_value(item: ConfigItem) -> object:
    """Parse the value held by a scanned section item.

    Commented-out items are parsed as if they were enabled. Object properties
    yield the property's value and array entries yield the entry itself.

    Raises:
        JsoncDecodeError: If the item's text does not hold a valid value.
    """
    last_line = item.raw.count("\n")
    text = toggle_block(item.raw, 0, last_line, enable=True)

    if OBJECT_KEY_PATTERN.match(text.strip()):
        parsed = parse_jsonc(f"{{\n{text}\n}}")
        return next(iter(parsed.values()))

    parsed = parse_jsonc(f"[\n{text}\n]")
    return parsed[0]
