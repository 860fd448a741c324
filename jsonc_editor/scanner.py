"""Section scanners that enumerate the entries of top-level arrays and objects."""

from __future__ import annotations

import logging

from .constants import ARRAY_ITEM_PATTERN, COMMENT_MARKER, OBJECT_KEY_PATTERN
from .lines import (
    find_balanced_block_end,
    find_section_start,
    get_brace_and_bracket_delta,
    get_brace_delta,
    split_lines,
    unquote_key,
)
from .models import ConfigItem

logger = logging.getLogger(__name__)


def parse_array_section(raw: str, section_key: str) -> list[ConfigItem]:
    """Extract the string entries of a top-level array section.

    Entries are assumed to be single-line strings, optionally commented out
    with ``//``. Blank lines and comments that contain no quoted string are
    skipped, as is any other line that does not look like a string entry.

    Args:
        raw: Document text.
        section_key: Name of the array section, e.g. ``"plugin"``.

    Returns:
        list[ConfigItem]: Entries in document order; empty when the section is
            missing.

    Examples:
        parse_array_section('{\\n  "plugin": [\\n    "foo"\\n  ]\\n}', "plugin")
    """
    lines = split_lines(raw)
    start_row = find_section_start(lines, section_key, "[")
    if start_row == -1:
        logger.debug("Array section %r not found", section_key)
        return []

    if get_brace_and_bracket_delta(lines[start_row]) <= 0:
        logger.debug("Array section %r is written inline", section_key)
        return []

    items: list[ConfigItem] = []
    for line_number in range(start_row + 1, len(lines)):
        line = lines[line_number]
        trimmed = line.strip()

        if trimmed.startswith("]"):
            break

        if not trimmed or (trimmed.startswith(COMMENT_MARKER) and '"' not in trimmed):
            continue

        match = ARRAY_ITEM_PATTERN.match(trimmed)
        if match:
            items.append(
                ConfigItem(
                    key=unquote_key(match.group(2)),
                    enabled=match.group(1) is None,
                    start_line=line_number,
                    end_line=line_number,
                    raw=line,
                )
            )

    return items


def _scan_object_keys(lines: list[str], start_line: int, initial_depth: int = 1) -> list[ConfigItem]:
    items: list[ConfigItem] = []
    depth = initial_depth
    line_number = start_line

    while line_number < len(lines):
        line = lines[line_number]
        trimmed = line.strip()

        # Closing brace of the section itself
        if trimmed == "}" or (trimmed.startswith("}") and depth == 1):
            break

        match = OBJECT_KEY_PATTERN.match(trimmed)
        if match:
            item_end = find_balanced_block_end(lines, line_number)
            items.append(
                ConfigItem(
                    key=unquote_key(match.group(2)),
                    enabled=match.group(1) is None,
                    start_line=line_number,
                    end_line=item_end,
                    raw="\n".join(lines[line_number : item_end + 1]),
                )
            )
            line_number = item_end + 1
            continue

        depth += get_brace_delta(line)
        if depth <= 0:
            break

        line_number += 1

    return items


def parse_object_section(raw: str, section_key: str) -> list[ConfigItem]:
    """Extract the direct properties of a top-level object section.

    Each property spans from its ``"key":`` line to the line where its value's
    braces and brackets balance again, so multi-line values (including nested
    objects) are captured whole. Duplicate keys are returned as they appear.

    Args:
        raw: Document text.
        section_key: Name of the object section, e.g. ``"provider"``.

    Returns:
        list[ConfigItem]: Properties in document order; empty when the section
            is missing.
    """
    lines = split_lines(raw)
    start_row = find_section_start(lines, section_key, "{")
    if start_row == -1:
        logger.debug("Object section %r not found", section_key)
        return []

    if get_brace_delta(lines[start_row]) <= 0:
        logger.debug("Object section %r is written inline", section_key)
        return []

    return _scan_object_keys(lines, start_row + 1)


def scan_section(raw: str, section_key: str) -> list[ConfigItem]:
    """Scan a section without knowing whether it holds an array or an object."""
    lines = split_lines(raw)
    array_start = find_section_start(lines, section_key, "[")
    object_start = find_section_start(lines, section_key, "{")
    if array_start != -1 and (object_start == -1 or array_start < object_start):
        return parse_array_section(raw, section_key)
    return parse_object_section(raw, section_key)
