"""Text mutators that edit JSONC documents line by line.

Every mutator takes the full document text and returns a new full text. Line
positions passed in must come from a scan of that exact text; after any edit
that changes the number of lines, earlier positions point at the wrong place.
"""

from __future__ import annotations

import functools
import json
import logging
import re
from collections.abc import Callable, Mapping

from .config import EditorConfig
from .constants import COMMENT_MARKER, PROPERTY_LINE_PATTERN
from .exceptions import SerializationError
from .lines import (
    find_balanced_block_end,
    find_section_start,
    get_brace_and_bracket_delta,
    get_brace_delta,
    is_comment,
    leading_whitespace,
    quote_key,
    split_lines,
    split_trailing_comment,
    strip_strings,
    unquote_key,
)
from .scanner import parse_array_section

logger = logging.getLogger(__name__)

_UNCOMMENT_PATTERN = re.compile(r"// ?")
_CRLF = "\r\n"


def _keeps_line_endings(edit: Callable[..., str]) -> Callable[..., str]:
    """Run `edit` on ``\\n``-separated text and restore CRLF line endings.

    Documents that contain CRLF are edited with plain newlines, then every
    line ending of the result is written back as CRLF. Edits that change
    nothing return the input untouched.
    """

    @functools.wraps(edit)
    def wrapper(raw: str, *args, **kwargs) -> str:
        if _CRLF not in raw:
            return edit(raw, *args, **kwargs)

        normalized = raw.replace(_CRLF, "\n")
        result = edit(normalized, *args, **kwargs)
        if result == normalized:
            return raw
        return result.replace("\n", _CRLF)

    return wrapper


def _uncomment(line: str) -> str:
    if not is_comment(line):
        return line
    return _UNCOMMENT_PATTERN.sub("", line, count=1)


def _comment(line: str) -> str:
    indent = leading_whitespace(line)
    content = line[len(indent) :]
    if content.startswith(COMMENT_MARKER):
        return line
    return f"{indent}{COMMENT_MARKER} {content}"


@_keeps_line_endings
def toggle_line(raw: str, line_index: int, enable: bool) -> str:
    """Comment out or uncomment a single line.

    Enabling strips the first ``//`` and at most one following space
    character; disabling inserts ``// `` after the line's indentation. Lines
    already in the requested state are left alone.

    Args:
        raw: Document text.
        line_index: Zero-based index of the line to toggle.
        enable: True to uncomment, False to comment out.

    Returns:
        str: The edited document, or `raw` when `line_index` is out of range.

    Examples:
        toggle_line('  "foo"', 0, False)  # '  // "foo"'
        toggle_line('  // "foo"', 0, True)  # '  "foo"'
    """
    lines = split_lines(raw)
    if line_index < 0 or line_index >= len(lines):
        return raw

    line = lines[line_index]
    lines[line_index] = _uncomment(line) if enable else _comment(line)
    return "\n".join(lines)


@_keeps_line_endings
def toggle_block(raw: str, start_line: int, end_line: int, enable: bool) -> str:
    """Comment out or uncomment every non-blank line of an inclusive range.

    Args:
        raw: Document text.
        start_line: Zero-based index of the first line.
        end_line: Zero-based index of the last line (inclusive).
        enable: True to uncomment, False to comment out.

    Returns:
        str: The edited document, or `raw` when the range is invalid.
    """
    lines = split_lines(raw)
    if not _is_valid_range(lines, start_line, end_line):
        return raw

    for index in range(start_line, end_line + 1):
        line = lines[index]
        if not line.strip():
            continue
        lines[index] = _uncomment(line) if enable else _comment(line)

    return "\n".join(lines)


@_keeps_line_endings
def remove_item(raw: str, start_line: int, end_line: int) -> str:
    """Delete an inclusive range of lines.

    Commas and brackets are not repaired; ranges are expected to come from a
    fresh scan, whose items never include the section's own delimiters.

    Args:
        raw: Document text.
        start_line: Zero-based index of the first line to delete.
        end_line: Zero-based index of the last line to delete (inclusive).

    Returns:
        str: The edited document, or `raw` when the range is invalid.
    """
    lines = split_lines(raw)
    if not _is_valid_range(lines, start_line, end_line):
        return raw

    del lines[start_line : end_line + 1]
    return "\n".join(lines)


def _is_valid_range(lines: list[str], start_line: int, end_line: int) -> bool:
    return 0 <= start_line <= end_line < len(lines)


def _serialize(key: str, value: object, json_indent: int | None) -> str:
    try:
        return json.dumps(value, indent=json_indent, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as error:
        raise SerializationError(key, str(error)) from error


def _indent_continuation(text: str, indent: str) -> str:
    return "\n".join(
        line if index == 0 else f"{indent}{line}" for index, line in enumerate(text.split("\n"))
    )


def _ensure_trailing_comma(lines: list[str], insert_line: int, floor: int = -1) -> None:
    """Append a comma to the nearest substantive line above `insert_line`.

    Blank and comment lines are skipped. Lines that already end in a comma or
    open a block are left alone, and so is anything at or above `floor`.
    """
    for index in range(insert_line - 1, floor, -1):
        line = lines[index]
        if not line.strip() or is_comment(line):
            continue

        body, comment = split_trailing_comment(line)
        if not body.rstrip().endswith((",", "{", "[")):
            lines[index] = f"{body},{comment}"
        return


def _expand_empty_inline_section(
    lines: list[str], start_row: int, section_key: str, opener: str, closer: str
) -> bool:
    pattern = re.compile(
        rf'^(\s*)("((?:\\.|[^"\\])*)"\s*:\s*){re.escape(opener)}\s*{re.escape(closer)}(.*)$'
    )
    match = pattern.match(lines[start_row])
    if not match or unquote_key(match.group(3)) != section_key:
        return False

    indent, key_part, _, suffix = match.groups()
    lines[start_row : start_row + 1] = [
        f"{indent}{key_part}{opener}",
        f"{indent}{closer}{suffix}",
    ]
    return True


@_keeps_line_endings
def add_item(
    raw: str, section_key: str, key: str, value: object, config: EditorConfig | None = None
) -> str:
    """Insert a new property at the end of a top-level object section.

    The entry goes right before the section's closing brace. When the last
    existing entry lacks a trailing comma, one is added to it; the new entry
    itself never gets a trailing comma.

    Args:
        raw: Document text.
        section_key: Name of the object section, e.g. ``"provider"``.
        key: Property name of the new entry.
        value: Any JSON-serializable value.
        config: Formatting configuration; defaults to `EditorConfig()`.

    Returns:
        str: The edited document, or `raw` when the section is missing or never
            closed.

    Raises:
        SerializationError: If `value` cannot be serialized as JSON.

    Examples:
        add_item(text, "mcp", "local", {"type": "local", "command": ["srv"]})
    """
    config = config or EditorConfig()
    value_text = _serialize(key, value, config.json_indent)

    lines = split_lines(raw)
    start_row = find_section_start(lines, section_key, "{")
    if start_row == -1:
        logger.debug("Cannot add %r: object section %r not found", key, section_key)
        return raw

    if get_brace_delta(lines[start_row]) <= 0 and not _expand_empty_inline_section(
        lines, start_row, section_key, "{", "}"
    ):
        logger.debug("Cannot add %r: object section %r is written inline", key, section_key)
        return raw

    depth = 1
    insert_line = -1
    for index in range(start_row + 1, len(lines)):
        depth += get_brace_delta(lines[index])
        if depth == 0:
            insert_line = index
            break

    if insert_line == -1:
        logger.debug("Cannot add %r: object section %r is never closed", key, section_key)
        return raw

    entry = (
        f"{config.entry_indent}{quote_key(key)}: "
        f"{_indent_continuation(value_text, config.entry_indent)}"
    )
    _ensure_trailing_comma(lines, insert_line, floor=start_row)
    lines.insert(insert_line, entry)
    return "\n".join(lines)


@_keeps_line_endings
def add_array_item(
    raw: str, section_key: str, value: str, config: EditorConfig | None = None
) -> str:
    """Append a string entry to a top-level array section.

    Entries already present (enabled or commented out) are not duplicated. A
    missing section is created as a new root property holding just `value`.

    Args:
        raw: Document text.
        section_key: Name of the array section, e.g. ``"plugin"``.
        value: Entry to append.
        config: Formatting configuration; defaults to `EditorConfig()`.

    Returns:
        str: The edited document, or `raw` when nothing needs to change or the
            section cannot be located safely.

    Raises:
        SerializationError: If `value` cannot be serialized as JSON.

    Examples:
        add_array_item('{\\n  "plugin": []\\n}', "plugin", "foo")
    """
    config = config or EditorConfig()
    entry = _serialize(section_key, value, None)

    lines = split_lines(raw)
    start_row = find_section_start(lines, section_key, "[")
    if start_row == -1:
        if find_section_start(lines, section_key, "{") != -1:
            logger.debug("Cannot append to %r: it is an object section", section_key)
            return raw
        return update_top_level_key(raw, section_key, [value], config)

    if any(item.key == value for item in parse_array_section(raw, section_key)):
        logger.debug("%r already present in %r", value, section_key)
        return raw

    if get_brace_and_bracket_delta(lines[start_row]) <= 0:
        if not _expand_empty_inline_section(lines, start_row, section_key, "[", "]"):
            if entry in lines[start_row]:
                return raw
            return _append_inline(lines, start_row, entry)

    close_line = find_balanced_block_end(lines, start_row)
    if "]" not in strip_strings(lines[close_line]):
        logger.debug("Cannot append to %r: array section is never closed", section_key)
        return raw

    if not lines[close_line].strip().startswith("]"):
        return _append_inline(lines, close_line, entry)

    _ensure_trailing_comma(lines, close_line, floor=start_row)
    lines.insert(close_line, f"{config.entry_indent}{entry}")
    return "\n".join(lines)


def _append_inline(lines: list[str], line_index: int, entry: str) -> str:
    line = lines[line_index]
    body, comment = split_trailing_comment(line)
    position = body.rfind("]")
    head = body[:position].rstrip()
    separator = " " if head.endswith((",", "[")) else ", "
    lines[line_index] = f"{head}{separator}{entry}{body[position:]}{comment}"
    return "\n".join(lines)


def _find_top_level_insert_line(lines: list[str]) -> int:
    depth = 0
    for index, line in enumerate(lines):
        depth += get_brace_delta(line)
        if depth == 0 and line.strip().startswith("}"):
            return index
    return -1


@_keeps_line_endings
def update_top_level_key(
    raw: str, key: str, value: object, config: EditorConfig | None = None
) -> str:
    """Replace or insert a root-level property.

    Only declarations at depth one count, so a nested property with the same
    name is never touched. Scalar values are replaced in place; composite
    values are replaced together with every line they span. Trailing commas
    and trailing ``//`` comments on the replaced line are kept. A missing key
    is inserted before the root object's closing brace.

    When the key appears more than once at the root, only the first
    occurrence is rewritten.

    Args:
        raw: Document text.
        key: Root property name.
        value: Any JSON-serializable value.
        config: Formatting configuration; defaults to `EditorConfig()`.

    Returns:
        str: The edited document, or `raw` when the key is missing and the
            root object has no closing brace.

    Raises:
        SerializationError: If `value` cannot be serialized as JSON.

    Examples:
        update_top_level_key('{\\n  "theme": "light"\\n}', "theme", "dark")
    """
    config = config or EditorConfig()
    value_text = _serialize(key, value, config.json_indent)

    lines = split_lines(raw)
    depth = 0

    for index, line in enumerate(lines):
        if is_comment(line):
            continue

        if depth == 1:
            match = PROPERTY_LINE_PATTERN.match(line)
            if match and unquote_key(match.group(3)) == key:
                indent, key_part, _, rest = match.groups()
                rendered = _indent_continuation(value_text, indent)
                rest_body, _ = split_trailing_comment(rest)

                end_line = index
                if rest_body.strip().startswith(("{", "[")):
                    end_line = find_balanced_block_end(lines, index)

                end_body, end_comment = split_trailing_comment(lines[end_line])
                comma = "," if end_body.rstrip().endswith(",") else ""
                lines[index : end_line + 1] = [f"{indent}{key_part}{rendered}{comma}{end_comment}"]
                return "\n".join(lines)

        depth += get_brace_and_bracket_delta(line)

    insert_line = _find_top_level_insert_line(lines)
    if insert_line == -1:
        logger.debug("Cannot insert %r: root object has no closing brace", key)
        return raw

    _ensure_trailing_comma(lines, insert_line)
    rendered = _indent_continuation(value_text, config.top_level_indent)
    lines.insert(insert_line, f"{config.top_level_indent}{quote_key(key)}: {rendered}")
    return "\n".join(lines)


def update_top_level_keys(
    raw: str, updates: Mapping[str, object], config: EditorConfig | None = None
) -> str:
    """Apply `update_top_level_key` for each entry of `updates`, in order."""
    result = raw
    for key, value in updates.items():
        result = update_top_level_key(result, key, value, config)
    return result


def _same_json(left: object, right: object) -> bool:
    try:
        return json.dumps(left, sort_keys=True) == json.dumps(right, sort_keys=True)
    except (TypeError, ValueError):
        return False


def changed_keys(before: Mapping[str, object], after: Mapping[str, object]) -> dict[str, object]:
    """Return the entries of `after` that are new or differ from `before`.

    Values are compared by their JSON form, so `1`, `1.0` and `True` count as
    different values.

    Feeding the result to `update_top_level_keys` saves a config while leaving
    untouched properties and comments as they were.

    Examples:
        changed_keys({"theme": "light", "model": "x"}, {"theme": "dark", "model": "x"})
        # {"theme": "dark"}
    """
    return {
        key: value
        for key, value in after.items()
        if key not in before or not _same_json(before[key], value)
    }
